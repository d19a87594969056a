"""
Authenticated backend sessions reached through the VPN gateway.

Each backend session is a small state machine:

    Unauthenticated --login()--> Authenticated --logout()--> Discarded

``login()`` may be called once; fetches are only allowed while
authenticated, and a logged-out session is never reused.
"""

import re

import requests

from aurora.core import config
from aurora.core.errors import (
    PORTAL, REGISTRAR, FetchError, LoginError, SessionStateError
)
from aurora.core.logger import setup_logging

logger = setup_logging()


class BackendSession:
    """Login state and raw fetches against one backend."""

    subsystem = 'backend'

    def __init__(self, vpn, base_url, paths):
        self.vpn = vpn
        self.base_url = base_url.rstrip('/')
        self.paths = paths
        self._logged_in = False
        self._discarded = False

    def url(self, name):
        return self.base_url + self.paths[name]

    def is_logged_in(self):
        return self._logged_in

    def login(self):
        """
        Authenticate against the backend.

        Returns:
            bool: True if the backend session is now authenticated
        """
        if self._discarded:
            raise SessionStateError(f"{self.subsystem} session was logged out and cannot be reused")
        if self._logged_in:
            raise SessionStateError(f"{self.subsystem} session is already logged in")

        try:
            self._logged_in = self._authenticate()
        except requests.RequestException as e:
            logger.error(f"{self.subsystem} login request failed: {type(e).__name__}")
            self._logged_in = False

        if self._logged_in:
            logger.info(f"{self.subsystem} login successful")
        else:
            logger.warning(f"{self.subsystem} login failed")
        return self._logged_in

    def logout(self):
        """Sign out; the session ends up unauthenticated even if the request fails."""
        self._require_login('logout')
        try:
            self._sign_out()
        except requests.RequestException as e:
            raise FetchError(self.subsystem, 'logout', type(e).__name__) from e
        finally:
            self._logged_in = False
            self._discarded = True
            logger.info(f"{self.subsystem} logged out")

    def _authenticate(self):
        """Open the home page; single sign-on through the gateway does the rest."""
        response = self.vpn.get(self.url('home'))
        return (response.ok
                and not self._is_sign_on_page(response)
                and self.paths['logout'] in response.text)

    def _sign_out(self):
        self.vpn.get(self.url('logout'))

    def _require_login(self, operation):
        if not self._logged_in:
            raise SessionStateError(
                f"{self.subsystem} {operation} requires an authenticated session"
            )

    def _is_sign_on_page(self, response):
        return config.SSO_LOGIN_MARKER in response.url

    def _fetch(self, operation, method, url, **kwargs):
        """Issue one authenticated request and return the response body."""
        self._require_login(operation)
        try:
            response = getattr(self.vpn, method)(url, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(self.subsystem, operation, type(e).__name__) from e

        if self._is_sign_on_page(response):
            # The backend dropped our session mid-sequence
            self._logged_in = False
            raise LoginError(self.subsystem, f"{self.subsystem} session expired during {operation}")

        logger.debug(f"{self.subsystem} {operation}: {len(response.text)} chars")
        return response.text


class RegistrarSession(BackendSession):
    """Academic affairs backend: course tables, grades and exams."""

    subsystem = REGISTRAR

    def __init__(self, vpn, semester_id, base_url=None, paths=None):
        super().__init__(vpn, base_url or config.REGISTRAR_URL, paths or config.REGISTRAR_PATHS)
        self.semester_id = semester_id

    def course_table_html(self):
        index = self._fetch('course table', 'get', self.url('course_table_index'))
        match = re.search(r'bg\.form\.addInput\(form,\s*"ids",\s*"(\d+)"\)', index)
        if not match:
            raise FetchError(self.subsystem, 'course table', "student ids token not found")

        payload = {
            'ignoreHead': '1',
            'setting.kind': 'std',
            'startWeek': '',
            'semester.id': self.semester_id,
            'ids': match.group(1)
        }
        return self._fetch('course table', 'post', self.url('course_table'), data=payload)

    def gpa_html(self):
        return self._fetch('grades', 'get', self.url('gpa'))

    def exam_list_html(self):
        return self._fetch('exam list', 'get', self.url('exam_index'))

    def exam_html(self, batch_id):
        return self._fetch('exam batch', 'get', self.url('exam_detail'),
                           params={'examBatch.id': batch_id})


class PortalSession(BackendSession):
    """Unified services backend: profile, campus card, network and library."""

    subsystem = PORTAL

    def __init__(self, vpn, base_url=None, paths=None):
        super().__init__(vpn, base_url or config.PORTAL_URL, paths or config.PORTAL_PATHS)

    def _json(self, operation, name):
        return self._fetch(operation, 'post', self.url(name), json={})

    def info_json(self):
        return self._json('student info', 'info')

    def network_json(self):
        return self._json('network usage', 'network')

    def card_json(self):
        return self._json('campus card', 'card')

    def library_html(self):
        return self._fetch('library loans', 'get', self.url('library'))
