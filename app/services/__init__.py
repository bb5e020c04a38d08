"""Domain services for reservations, schedules, tables and the audit log"""
