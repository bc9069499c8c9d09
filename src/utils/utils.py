"""
    **Module Utils**
     - Common Application Utilities**
     - Utilities for commonly performed tasks -
"""
import random
import re
import socket
import string

# NOTE set of characters to use when generating Unique ID
_char_set = string.ascii_lowercase + string.ascii_uppercase + string.digits


def create_id(size: int = 16, chars: str = _char_set) -> str:
    """
        **create_id**
            create a random id, used to tag submissions in logs and outbound mail headers

    :param size: size of string - leave as default if you can
    :param chars: character set to create Unique identifier from leave as default
    :return: randomly generated id
    """
    return ''.join(random.choices(chars, k=size))


def camel_to_snake(name: str) -> str:
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def is_development(config_instance) -> bool:
    return socket.gethostname().casefold() == config_instance().DEVELOPMENT_SERVER_NAME.casefold()
