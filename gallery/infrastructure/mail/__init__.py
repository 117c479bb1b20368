from gallery.infrastructure.mail.di import MailProvider
from gallery.infrastructure.mail.http import HttpMailer, LogMailer

__all__ = ["HttpMailer", "LogMailer", "MailProvider"]
