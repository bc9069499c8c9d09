from src.email.transports import MailTransport, MailTransportError, OutboundEmail, SendGridTransport, \
    SMTPTransport, create_transport
