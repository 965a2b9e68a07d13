from oauth2_server.handlers.authenticate import AuthenticateHandler
from oauth2_server.handlers.authorize import AuthorizeHandler
from oauth2_server.handlers.token import TokenHandler

__all__ = ["AuthenticateHandler", "AuthorizeHandler", "TokenHandler"]
