from .mailer import MailNotifier, format_body, format_subject

__all__ = ["MailNotifier", "format_body", "format_subject"]
