"""Imports manager"""

from .redirect import OIDCRedirectView as OIDCRedirectView
from .callback import OIDCCallbackView as OIDCCallbackView
from .logout import OIDCLogoutView as OIDCLogoutView
from .error import render_error as render_error
