import pyotp

from lawhelp.core.config import EmailConfig
from lawhelp.core.constants import CODE_EMAIL_VERIFICATION, CODE_TWO_FACTOR
from lawhelp.services.email_service import EmailService
from lawhelp.services.two_factor_service import TwoFactorService


class RecordingMailer:
    def __init__(self, result=True):
        self.result = result
        self.sent = []

    def send_email(self, email, subject, body, name="there"):
        self.sent.append((email, subject, body, name))
        return self.result


def test_totp_setup():
    service = TwoFactorService(RecordingMailer())

    setup = service.generate_totp_secret("amina@example.cm")

    assert len(setup.secret) == 32
    assert setup.qr_code_url.startswith("data:image/png;base64,")
    assert len(setup.backup_codes) == 10
    assert len(set(setup.backup_codes)) == 10
    assert all(len(code) == 8 and code.isalnum() for code in setup.backup_codes)
    assert service.verify_totp(pyotp.TOTP(setup.secret).now(), setup.secret)


def test_verify_totp_rejects_bad_input():
    service = TwoFactorService(RecordingMailer())
    secret = pyotp.random_base32()

    assert not service.verify_totp("12345", secret)
    assert not service.verify_totp("abcdef", secret)
    assert not service.verify_totp(pyotp.TOTP(secret).now(), None)


def test_email_codes_are_six_digits():
    codes = {TwoFactorService.generate_email_code() for _ in range(50)}

    assert all(TwoFactorService.is_valid_email_code(code) for code in codes)
    assert not TwoFactorService.is_valid_email_code("1234567")


def test_send_email_code_uses_subject_for_type():
    mailer = RecordingMailer()
    service = TwoFactorService(mailer)

    assert service.send_email_code("amina@example.cm", "482913", CODE_TWO_FACTOR, name="Amina")

    email, subject, body, name = mailer.sent[0]
    assert subject == "LawHelp - Two-Factor Authentication Code"
    assert "482913" in body
    assert "10 minutes" in body
    assert name == "Amina"


def test_send_email_code_reports_failure():
    service = TwoFactorService(RecordingMailer(result=False))

    assert service.send_email_code("amina@example.cm", "482913", CODE_EMAIL_VERIFICATION) is False


def test_unconfigured_email_service_does_not_send(monkeypatch):
    def explode(*args, **kwargs):
        raise AssertionError("SMTP should not be used")

    monkeypatch.setattr("smtplib.SMTP", explode)

    assert EmailService().send_email("amina@example.cm", "Subject", "Body") is False


class FakeSMTP:
    instances = []

    def __init__(self, server, port):
        self.address = (server, port)
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def sendmail(self, sender, recipient, message):
        self.calls.append(("sendmail", sender, recipient))


def test_configured_email_service_sends_over_starttls(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr("smtplib.SMTP", FakeSMTP)
    settings = EmailConfig(smtp_server="smtp.example.cm", smtp_username="noreply@lawhelp.cm", smtp_password="secret")

    sent = EmailService(settings, app_name="LawHelp").send_email("amina@example.cm", "Subject", "Body", name="Amina")

    assert sent is True
    smtp = FakeSMTP.instances[0]
    assert smtp.address == ("smtp.example.cm", 587)
    assert smtp.calls == [
        "starttls",
        ("login", "noreply@lawhelp.cm"),
        ("sendmail", "noreply@lawhelp.cm", "amina@example.cm"),
    ]
