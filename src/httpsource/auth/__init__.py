"""Request authentication strategies."""

from httpsource.auth.authenticator import Authenticator
from httpsource.auth.basic_auth import BasicAuthenticator
from httpsource.auth.none_auth import NoneAuthenticator
from httpsource.auth.ntlm_auth import NTLMAuthenticator
from httpsource.auth.registry import register_authenticator
from httpsource.auth.resolver import resolve_authenticator

register_authenticator("none", NoneAuthenticator)
register_authenticator("basic", BasicAuthenticator)
register_authenticator("ntlm", NTLMAuthenticator)

__all__ = ["Authenticator", "resolve_authenticator"]
