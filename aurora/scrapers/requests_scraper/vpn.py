import requests
from bs4 import BeautifulSoup

from aurora.core import config
from aurora.core.errors import GATEWAY, LoginError, SessionStateError
from aurora.core.logger import setup_logging

logger = setup_logging()


class VpnSession:
    """
    Manages the VPN gateway session and its cookie jar.

    Both backends are only reachable through the gateway, so this session is
    shared by every backend session of one run. It is a single-owner
    resource: log in once, destroy exactly once. Used as a context manager
    it logs in on entry and destroys itself on exit.
    """

    def __init__(self, student_id, password, headers=None, timeout=None):
        self.student_id = student_id
        self._password = password
        self.session = requests.Session()
        self.session.headers.update(headers or config.HEADERS)
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self._logged_in = False
        self._destroyed = False

    def __enter__(self):
        if not self.login():
            self.destroy()
            raise LoginError(GATEWAY)
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.destroy()
        return False

    def _extract_login_fields(self, html):
        """Extract the hidden single sign-on form fields from HTML."""
        soup = BeautifulSoup(html, 'html.parser')
        fields = {}
        for name in ('lt', 'execution'):
            box = soup.find('input', {'name': name})
            fields[name] = box.get('value', '') if box else None
        return fields

    def _has_gateway_cookie(self):
        return any(cookie.name.startswith(config.GATEWAY_COOKIE_PREFIX)
                   for cookie in self.session.cookies)

    def login(self):
        """
        Sign on to the gateway through the single sign-on form.

        Returns:
            bool: True if the gateway accepted the credentials
        """
        self._require_alive()
        if self._logged_in:
            raise SessionStateError("Gateway session is already logged in")

        try:
            login_page = self.session.get(config.SSO_LOGIN_URL, timeout=self.timeout)
            fields = self._extract_login_fields(login_page.text)
            if not fields['lt'] or fields['execution'] is None:
                logger.error("Sign-on form fields not found on gateway login page")
                return False

            payload = {
                'rsa': self.student_id + self._password + fields['lt'],
                'ul': str(len(self.student_id)),
                'pl': str(len(self._password)),
                'lt': fields['lt'],
                'execution': fields['execution'],
                '_eventId': 'submit'
            }
            response = self.session.post(login_page.url, data=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Gateway login request failed: {type(e).__name__}")
            return False

        self._logged_in = (config.SSO_LOGIN_MARKER not in response.url
                           and self._has_gateway_cookie())
        if self._logged_in:
            logger.info("Gateway login successful")
        else:
            logger.warning("Gateway rejected the credentials")
        return self._logged_in

    def is_logged_in(self):
        return self._logged_in and not self._destroyed

    def get(self, url, **kwargs):
        self._require_alive()
        kwargs.setdefault('timeout', self.timeout)
        return self.session.get(url, **kwargs)

    def post(self, url, **kwargs):
        self._require_alive()
        kwargs.setdefault('timeout', self.timeout)
        return self.session.post(url, **kwargs)

    def destroy(self):
        """Drop the gateway cookies and close the HTTP session."""
        self._require_alive()
        self._destroyed = True
        self._logged_in = False
        self.session.cookies.clear()
        self.session.close()
        logger.info("Gateway session destroyed")

    @property
    def destroyed(self):
        return self._destroyed

    def _require_alive(self):
        if self._destroyed:
            raise SessionStateError("Gateway session has been destroyed")
