"""Attendance & Payroll package.

Feature modules (attendance, leave, payroll, users, settings) each expose
frozen domain models, a repository protocol with a MySQL implementation and a
service layer holding the business rules.
"""
