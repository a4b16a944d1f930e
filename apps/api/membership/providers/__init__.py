from .email import EmailServiceError, EmailConfigError, OutgoingEmail, SendGridProvider, get_email_provider

__all__ = [
    "EmailServiceError",
    "EmailConfigError",
    "OutgoingEmail",
    "SendGridProvider",
    "get_email_provider",
]
