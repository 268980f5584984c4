"""
rsaplan.cli: Command-line interface entry points.

Entry Points:
- run_plan.py: ``rsa-plan`` batch planner (load, plan, validate, report)
"""
