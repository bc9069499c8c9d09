from typing import Iterable, Mapping

from src.utils.my_logger import init_logger
from src.utils.utils import camel_to_snake


class SubmissionGuard:
    """
        Attributes:
        -----------
        honeypot_fields: tuple
            names of hidden form fields that humans never fill in
        max_payload_size: int
            the largest request body, in bytes, accepted; reading stops once a body goes past it
    """

    def __init__(self, honeypot_fields: Iterable[str], max_payload_size: int):
        self.honeypot_fields: tuple[str, ...] = tuple(honeypot_fields)
        self.max_payload_size: int = max_payload_size
        self._logger = init_logger(camel_to_snake(self.__class__.__name__))

    def is_spam(self, fields: Mapping[str, object]) -> bool:
        """a submission is spam when any honeypot field carries a value"""
        for field_name in self.honeypot_fields:
            value = fields.get(field_name)
            if value is not None and str(value).strip():
                self._logger.warning(f"Honeypot field '{field_name}' filled in, dropping submission")
                return True
        return False

    def is_body_too_large(self, size: int) -> bool:
        """checked against the bytes actually read so far"""
        return size > self.max_payload_size

    def is_payload_too_large(self, headers: Mapping[str, str]) -> bool:
        """early refusal based on the declared Content-Length, chunked bodies have none"""
        content_length = headers.get('content-length')
        if content_length is None:
            return False
        try:
            return int(content_length) > self.max_payload_size
        except ValueError:
            return True
