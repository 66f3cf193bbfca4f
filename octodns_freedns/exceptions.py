#
#
#

from octodns.provider import ProviderException


class FreeDNSClientException(ProviderException):
    pass


class FreeDNSAuthError(FreeDNSClientException):
    def __init__(self, msg='Unauthorized'):
        super().__init__(msg)


class FreeDNSConfigError(FreeDNSAuthError):
    pass


class FreeDNSTransportError(FreeDNSClientException):
    def __init__(self, status, reason):
        self.status = status
        self.reason = reason
        if status is None:
            super().__init__(reason)
        else:
            super().__init__(f'{status}: {reason}')


class FreeDNSProviderError(FreeDNSClientException):
    """Error text FreeDNS rendered into an otherwise successful page.

    ``partial`` holds whatever was extracted from the same page.
    """

    def __init__(self, message, partial=None):
        super().__init__(message)
        self.message = message
        self.partial = partial


class FreeDNSDomainNotFound(FreeDNSClientException):
    def __init__(self, name):
        super().__init__(f'Domain not found: {name}')
        self.name = name
