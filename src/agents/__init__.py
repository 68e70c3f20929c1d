"""Outbound integrations.

Modules:
    notify_agent       — SMTP transport and order / shipping / parts emails
    email_templates    — HTML bodies shared by every email
"""
