# -*- coding: utf-8 -*-
"""
Session orchestration for one student's record collection.

The orchestrator decides from the requested record kinds which backends to
engage, then runs each backend strictly in turn:

    registrar: login -> course table, GPA, exams -> logout
    portal:    login -> student, network, card, library -> logout

Any login failure for a backend whose data was requested, and any payload
that cannot be parsed, aborts the whole collection; no partial result is
returned. Backend sessions left authenticated are logged out on every exit
path. The VPN gateway session is owned by the caller; ``fetch_records``
is that caller for ordinary use and destroys it exactly once.
"""

from typing import Dict

from aurora.core import config
from aurora.core.errors import (
    GATEWAY, PORTAL, REGISTRAR, FetchError, LoginError, ParseError, SessionStateError
)
from aurora.core.logger import setup_logging
from aurora.core.selection import (
    PORTAL_KINDS, REGISTRAR_KINDS, CredentialContext, RecordKind, select
)
from aurora.core.throttle import Throttle, sleep_throttle
from aurora.data.records import ExamData
from aurora.scrapers.requests_scraper import parsers as default_parsers
from aurora.scrapers.requests_scraper.backend import PortalSession, RegistrarSession
from aurora.scrapers.requests_scraper.vpn import VpnSession

logger = setup_logging()


class SessionOrchestrator:
    """
    Drives the registrar and portal sessions for one credential context.

    Args:
        context: Identity and selection for this run
        vpn: Gateway session, already logged in
        registrar: Registrar session (built over ``vpn`` when omitted)
        portal: Portal session (built over ``vpn`` when omitted)
        throttle: Delay function taking milliseconds
        parsers: Namespace of transformer functions
        engage_portal_always: Log in to the portal even when none of its
            kinds is requested
        detail_delay_ms: Pause before each exam batch request

    Raises:
        LoginError: ``gateway`` if ``vpn`` is not logged in
    """

    def __init__(self, context: CredentialContext, vpn, registrar=None, portal=None,
                 throttle: Throttle = sleep_throttle, parsers=None, engage_portal_always=True,
                 detail_delay_ms=None):
        if not vpn.is_logged_in():
            raise LoginError(GATEWAY)

        self.context = context
        self.vpn = vpn
        self.registrar = registrar or RegistrarSession(vpn, context.semester_id)
        self.portal = portal or PortalSession(vpn)
        self.throttle = throttle
        self.parsers = parsers or default_parsers
        self.engage_portal_always = engage_portal_always
        self.detail_delay_ms = config.COURTESY_DELAY_MS if detail_delay_ms is None else detail_delay_ms
        self._collected = False

        self._registrar_fetchers = {
            RecordKind.COURSE_TABLE: self._course_table,
            RecordKind.GPA: self._gpa,
            RecordKind.EXAM: self._exam,
        }
        self._portal_fetchers = {
            RecordKind.STUDENT: self._student,
            RecordKind.NETWORK: self._network,
            RecordKind.CARD: self._card,
            RecordKind.LIBRARY_BOOK: self._library,
        }

    def collect(self) -> Dict[RecordKind, object]:
        """
        Fetch every requested record kind.

        Returns:
            dict: RecordKind -> typed record, one entry per requested kind

        Raises:
            LoginError: a backend whose data was requested refused the login
            ParseError: a payload could not be parsed
            FetchError: a backend request failed
            SessionStateError: the orchestrator was already used
        """
        if self._collected:
            raise SessionStateError("collect() can only run once per orchestrator")
        self._collected = True

        results = {}
        try:
            self._collect_registrar(results)
            self._collect_portal(results)
        finally:
            self._release_backends()

        logger.info(f"Collected {len(results)} record kind(s)")
        return results

    # ---------------------- Backend lifecycles ----------------------

    def _collect_registrar(self, results):
        kinds = [kind for kind in REGISTRAR_KINDS if self.context.wants(kind)]
        if self.context.wants_any(REGISTRAR_KINDS) and not self.registrar.login():
            raise LoginError(REGISTRAR)

        for kind in kinds:
            self._require_login(self.registrar, REGISTRAR)
            logger.info(f"Fetching {kind.name} from registrar")
            results[kind] = self._registrar_fetchers[kind]()

        # The two backends must never hold sessions at the same time
        self._logout(self.registrar)

    def _collect_portal(self, results):
        kinds = [kind for kind in PORTAL_KINDS if self.context.wants(kind)]
        # TODO: drop the unconditional portal login once a run without portal kinds is confirmed safe
        if kinds or self.engage_portal_always:
            if not self.portal.login() and kinds:
                raise LoginError(PORTAL)

        for kind in kinds:
            self._require_login(self.portal, PORTAL)
            logger.info(f"Fetching {kind.name} from portal")
            results[kind] = self._portal_fetchers[kind]()

        self._logout(self.portal)

    def _release_backends(self):
        self._logout(self.registrar)
        self._logout(self.portal)

    @staticmethod
    def _logout(session):
        """Sign out if still authenticated; a failed sign-out request is only logged."""
        if not session.is_logged_in():
            return
        try:
            session.logout()
        except FetchError as e:
            logger.warning(f"Ignoring failed sign-out: {e}")

    @staticmethod
    def _require_login(session, subsystem):
        if not session.is_logged_in():
            raise LoginError(subsystem)

    def _transform(self, kind, func, payload):
        """Run one transformer; any failure to read the payload is a ParseError."""
        try:
            return func(payload)
        except ParseError:
            raise
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ParseError(kind, str(e)) from e

    # ---------------------- Registrar records ----------------------

    def _course_table(self):
        html = self.registrar.course_table_html()
        return self._transform(RecordKind.COURSE_TABLE, self.parsers.html2course, html)

    def _gpa(self):
        html = self.registrar.gpa_html()
        return self._transform(RecordKind.GPA, self.parsers.html2gpa, html)

    def _exam(self):
        """
        Exams come from an index page plus one page per further exam batch.

        The index lists batch ids, the first being the index itself; the
        remaining batches are fetched in order with a pause before each.
        """
        kind = RecordKind.EXAM
        index_html = self.registrar.exam_list_html()
        batch_ids = self._transform(kind, self._exam_ids, index_html)[1:]
        child_exams = self._transform(kind, self._exam_rows, index_html)

        for batch_id in batch_ids:
            self.throttle(self.detail_delay_ms)
            batch_html = self.registrar.exam_html(batch_id)
            child_exams.extend(self._transform(kind, self._exam_rows, batch_html))

        logger.debug(f"Exam batches fetched: {len(batch_ids)}, exams: {len(child_exams)}")
        return ExamData(child_exams)

    def _exam_ids(self, html):
        return list(self.parsers.html2exam_ids(html))

    def _exam_rows(self, html):
        return list(self.parsers.html2exams(html))

    # ---------------------- Portal records ----------------------

    def _student(self):
        return self._transform(RecordKind.STUDENT, self.parsers.json2student, self.portal.info_json())

    def _network(self):
        return self._transform(RecordKind.NETWORK, self.parsers.json2net, self.portal.network_json())

    def _card(self):
        return self._transform(RecordKind.CARD, self.parsers.json2card, self.portal.card_json())

    def _library(self):
        return self._transform(RecordKind.LIBRARY_BOOK, self.parsers.html2books, self.portal.library_html())


def fetch_records(student_id, password, semester_id, kinds, throttle=sleep_throttle, vpn=None):
    """
    High-level function to collect one student's records.

    Args:
        student_id: Login id
        password: Login password
        semester_id: Registrar semester id used for the course table
        kinds: RecordKind selection, or an iterable of RecordKind
        throttle: Delay function taking milliseconds
        vpn: Gateway session to use instead of a fresh ``VpnSession``

    Returns:
        dict: RecordKind -> typed record

    Raises:
        LoginError: ``gateway`` when the gateway refuses the login
    """
    if not isinstance(kinds, RecordKind):
        kinds = select(*kinds)
    context = CredentialContext(student_id, password, semester_id, kinds)
    logger.info(f"Collecting records for {context.student_id}")

    with (vpn or VpnSession(context.student_id, context.password)) as gateway:
        return SessionOrchestrator(context, gateway, throttle=throttle).collect()
