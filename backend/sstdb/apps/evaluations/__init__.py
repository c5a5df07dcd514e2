# backend/sstdb/apps/evaluations/__init__.py
"""Training-evaluation eligibility, question assembly and scoring."""
