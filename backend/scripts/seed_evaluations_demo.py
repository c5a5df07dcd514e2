from datetime import date

from sstdb.database import WriteSessionLocal
from sstdb.apps.evaluations import models
from sstdb.apps.evaluations.enums import MembershipStatus, TemplateStatus


def run():
    db = WriteSessionLocal()
    year = date.today().year

    templates = [
        models.EvaluationTemplate(code="EV-IND-001", name="Inducción SST", description="Evaluación de inducción para todo el personal", template_type="Inducción", population_target="All", status=TemplateStatus.ACTIVE, validity_year=year, pass_threshold_percent=70, time_limit_minutes=20, max_attempts=2, randomize_questions=True, show_feedback=True),
        models.EvaluationTemplate(code="EV-COP-001", name="COPASST anual", description="Funciones del comité paritario", template_type="Comité", population_target="COPASST, Comité de Convivencia", status=TemplateStatus.ACTIVE, validity_year=year, pass_threshold_percent=80, time_limit_minutes=30, max_attempts=1),
    ]
    for t in templates:
        if not db.query(models.EvaluationTemplate).filter_by(code=t.code, validity_year=year).first():
            db.add(t)
    db.flush()

    induction = db.query(models.EvaluationTemplate).filter_by(code="EV-IND-001", validity_year=year).first()
    if not db.query(models.TemplateQuestionLink).filter_by(template_id=induction.id).first():
        questions = [
            models.QuestionBankItem(text="¿Qué elemento protege la cabeza?", question_type="Selección Única", options_raw=["Casco", "Guantes", "Botas"], correct_answer_raw="Casco", explanation="El casco protege contra impactos."),
            models.QuestionBankItem(text="Seleccione los EPP para trabajo en alturas", question_type="Selección Múltiple", options_raw=[{"key": "A", "text": "Arnés"}, {"key": "B", "text": "Eslinga"}, {"key": "C", "text": "Sandalias"}], correct_answer_raw='["A","B"]'),
            models.QuestionBankItem(text="Todo incidente debe reportarse", question_type="Verdadero/Falso", correct_answer_raw="TRUE"),
        ]
        db.add_all(questions)
        db.flush()
        for idx, question in enumerate(questions, start=1):
            db.add(models.TemplateQuestionLink(template_id=induction.id, question_id=question.id, order=idx, point_value=10, required=True))

    memberships = [
        ("EMP-001", "COPASST", False),
        ("EMP-002", "Brigada de Emergencia", False),
        ("EMP-900", "Gerencia", True),
    ]
    for employee_id, committee, excluded in memberships:
        if not db.query(models.CommitteeMembership).filter_by(employee_id=employee_id, committee_name=committee).first():
            db.add(models.CommitteeMembership(employee_id=employee_id, committee_name=committee, status=MembershipStatus.ACTIVE, exclude_from_evaluations=excluded))

    db.commit()
    print("Seeded evaluations demo data")


if __name__ == "__main__":
    run()
