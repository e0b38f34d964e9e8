"""Application package for the EduSoft skills assessment backend.

The package exposes the models, repositories and services behind the
FastAPI application in `edusoft.main`: language assessments with a
weekly cooldown, supervisor-reviewed video submissions, LeetCode
practice tracking, puzzle and questionnaire scoring.
"""
