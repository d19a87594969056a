#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Unit Tests for the Session Orchestrator

Tests covering backend engagement, fetch ordering, exam batch pacing,
fail-fast login handling and cleanup on every exit path.
"""

import itertools
import unittest
from unittest.mock import patch

from aurora.core.errors import FetchError, LoginError, ParseError, SessionStateError
from aurora.core.orchestrator import SessionOrchestrator, fetch_records
from aurora.core.selection import (
    ALL_KINDS, PORTAL_KINDS, REGISTRAR_KINDS, CredentialContext, RecordKind, select
)
from aurora.data.records import ExamData


class FakeBackend:
    """Backend session double recording every call into a shared log."""

    def __init__(self, name, log, login_ok=True):
        self.name = name
        self.log = log
        self.login_ok = login_ok
        self.logged_in = False
        self.login_calls = 0
        self.logout_error = None

    def login(self):
        self.login_calls += 1
        self.log.append((self.name, 'login'))
        self.logged_in = self.login_ok
        return self.login_ok

    def is_logged_in(self):
        return self.logged_in

    def logout(self):
        self.log.append((self.name, 'logout'))
        self.logged_in = False
        if self.logout_error:
            raise self.logout_error

    def _fetch(self, operation, payload):
        if not self.logged_in:
            raise SessionStateError(f"{self.name} {operation} while logged out")
        self.log.append((self.name, operation))
        return payload


class FakeRegistrar(FakeBackend):

    def __init__(self, log, login_ok=True):
        super().__init__('registrar', log, login_ok)

    def course_table_html(self):
        return self._fetch('course_table', 'COURSE')

    def gpa_html(self):
        return self._fetch('gpa', 'GPA')

    def exam_list_html(self):
        return self._fetch('exam_list', 'INDEX')

    def exam_html(self, batch_id):
        return self._fetch(f'exam:{batch_id}', f'BATCH-{batch_id}')


class FakePortal(FakeBackend):

    def __init__(self, log, login_ok=True):
        super().__init__('portal', log, login_ok)

    def info_json(self):
        return self._fetch('student', 'STUDENT')

    def network_json(self):
        return self._fetch('network', 'NETWORK')

    def card_json(self):
        return self._fetch('card', 'CARD')

    def library_html(self):
        return self._fetch('library', 'LIBRARY')


class FakeParsers:
    """Transformers returning tagged payloads so results can be traced."""

    exam_ids = ['self', 'a', 'b']
    exams = {'INDEX': ['e0'], 'BATCH-a': ['a1', 'a2'], 'BATCH-b': ['b1']}

    def html2course(self, html):
        return ('course', html)

    def html2gpa(self, html):
        return ('gpa', html)

    def html2exam_ids(self, html):
        return list(self.exam_ids)

    def html2exams(self, html):
        return list(self.exams[html])

    def json2student(self, payload):
        return ('student', payload)

    def json2net(self, payload):
        return ('network', payload)

    def json2card(self, payload):
        return ('card', payload)

    def html2books(self, payload):
        return ('library', payload)


class FakeVpn:

    def __init__(self, log, logged_in=True):
        self.log = log
        self.logged_in = logged_in
        self.destroy_calls = 0

    def is_logged_in(self):
        return self.logged_in

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.destroy()
        return False

    def destroy(self):
        self.destroy_calls += 1
        self.log.append(('vpn', 'destroy'))


class OrchestratorTestCase(unittest.TestCase):
    """Shared fixtures for orchestrator tests"""

    def setUp(self):
        self.log = []
        self.vpn = FakeVpn(self.log)
        self.registrar = FakeRegistrar(self.log)
        self.portal = FakePortal(self.log)
        self.parsers = FakeParsers()

    def throttle(self, milliseconds):
        self.log.append(('throttle', milliseconds))

    def make_orchestrator(self, selection, **kwargs):
        context = CredentialContext('20200001', 'secret', '51', selection)
        kwargs.setdefault('detail_delay_ms', 500)
        return SessionOrchestrator(context, self.vpn, registrar=self.registrar, portal=self.portal,
                                   throttle=self.throttle, parsers=self.parsers, **kwargs)

    def fetches(self, name):
        return [op for who, op in self.log if who == name and op not in ('login', 'logout')]


class TestBackendEngagement(OrchestratorTestCase):

    def test_registrar_engaged_only_for_registrar_kinds(self):
        """Registrar login iff the selection holds a registrar kind; portal always"""
        for flags in itertools.product([False, True], repeat=len(ALL_KINDS)):
            with self.subTest(flags=flags):
                self.setUp()
                selection = select(*[k for k, on in zip(ALL_KINDS, flags) if on])
                results = self.make_orchestrator(selection).collect()

                wants_registrar = any(k in selection for k in REGISTRAR_KINDS)
                self.assertEqual(self.registrar.login_calls, 1 if wants_registrar else 0)
                self.assertEqual(self.portal.login_calls, 1)
                self.assertEqual(set(results), {k for k in ALL_KINDS if k in selection})

    def test_registrar_logged_out_before_portal_login(self):
        self.make_orchestrator(select(RecordKind.GPA, RecordKind.STUDENT)).collect()

        self.assertEqual(self.log, [
            ('registrar', 'login'), ('registrar', 'gpa'), ('registrar', 'logout'),
            ('portal', 'login'), ('portal', 'student'), ('portal', 'logout'),
        ])

    def test_portal_skipped_when_not_always_engaged(self):
        self.make_orchestrator(select(RecordKind.GPA), engage_portal_always=False).collect()

        self.assertEqual(self.portal.login_calls, 0)

    def test_portal_login_failure_without_portal_kinds_is_not_fatal(self):
        self.portal.login_ok = False

        results = self.make_orchestrator(select(RecordKind.GPA)).collect()

        self.assertEqual(results, {RecordKind.GPA: ('gpa', 'GPA')})
        self.assertNotIn(('portal', 'logout'), self.log)


class TestFetchOrdering(OrchestratorTestCase):

    def test_fixed_order_regardless_of_selection_order(self):
        for kinds in itertools.permutations(REGISTRAR_KINDS):
            with self.subTest(kinds=kinds):
                self.setUp()
                self.make_orchestrator(select(*kinds, *reversed(PORTAL_KINDS))).collect()

                self.assertEqual(self.fetches('registrar'),
                                 ['course_table', 'gpa', 'exam_list', 'exam:a', 'exam:b'])
                self.assertEqual(self.fetches('portal'),
                                 ['student', 'network', 'card', 'library'])


class TestExamFanOut(OrchestratorTestCase):

    def test_batches_appended_in_id_order_with_one_delay_each(self):
        results = self.make_orchestrator(select(RecordKind.EXAM)).collect()

        self.assertEqual(results[RecordKind.EXAM], ExamData(['e0', 'a1', 'a2', 'b1']))
        self.assertEqual(self.log[:6], [
            ('registrar', 'login'),
            ('registrar', 'exam_list'),
            ('throttle', 500),
            ('registrar', 'exam:a'),
            ('throttle', 500),
            ('registrar', 'exam:b'),
        ])
        self.assertEqual(self.log.count(('throttle', 500)), 2)

    def test_index_only_needs_no_delay(self):
        self.parsers.exam_ids = ['self']

        results = self.make_orchestrator(select(RecordKind.EXAM)).collect()

        self.assertEqual(results[RecordKind.EXAM].child_exams, ['e0'])
        self.assertNotIn('throttle', [who for who, _ in self.log])

    def test_configured_delay_is_passed_to_throttle(self):
        self.make_orchestrator(select(RecordKind.EXAM), detail_delay_ms=750).collect()

        self.assertEqual([ms for who, ms in self.log if who == 'throttle'], [750, 750])


class TestFailFast(OrchestratorTestCase):

    def test_registrar_login_failure_aborts_before_any_fetch(self):
        self.registrar.login_ok = False

        with self.assertRaises(LoginError) as ctx:
            self.make_orchestrator(select(RecordKind.COURSE_TABLE, RecordKind.STUDENT)).collect()

        self.assertEqual(ctx.exception.subsystem, 'registrar')
        self.assertEqual(self.log, [('registrar', 'login')])

    def test_portal_login_failure_discards_registrar_results(self):
        self.portal.login_ok = False
        orchestrator = self.make_orchestrator(select(RecordKind.GPA, RecordKind.CARD))

        with self.assertRaises(LoginError) as ctx:
            orchestrator.collect()

        self.assertEqual(ctx.exception.subsystem, 'portal')
        self.assertEqual(self.fetches('portal'), [])

    def test_session_lost_mid_sequence_is_a_login_error(self):
        original = self.registrar.gpa_html

        def gpa_then_expire():
            payload = original()
            self.registrar.logged_in = False
            return payload

        self.registrar.gpa_html = gpa_then_expire

        with self.assertRaises(LoginError) as ctx:
            self.make_orchestrator(select(RecordKind.GPA, RecordKind.EXAM)).collect()

        self.assertEqual(ctx.exception.subsystem, 'registrar')
        self.assertNotIn('exam_list', self.fetches('registrar'))

    def test_transformer_failure_becomes_parse_error(self):
        def broken(html):
            raise KeyError('credit')

        self.parsers.html2gpa = broken

        with self.assertRaises(ParseError) as ctx:
            self.make_orchestrator(select(RecordKind.GPA)).collect()

        self.assertEqual(ctx.exception.kind, RecordKind.GPA)
        self.assertFalse(self.registrar.is_logged_in())

    def test_gateway_must_be_logged_in(self):
        self.vpn.logged_in = False

        with self.assertRaises(LoginError) as ctx:
            self.make_orchestrator(select(RecordKind.GPA))

        self.assertEqual(ctx.exception.subsystem, 'gateway')

    def test_collect_runs_once(self):
        orchestrator = self.make_orchestrator(select(RecordKind.STUDENT))
        orchestrator.collect()

        with self.assertRaises(SessionStateError):
            orchestrator.collect()


class TestCleanup(OrchestratorTestCase):
    """fetch_records owns the gateway session and must release everything"""

    def run_fetch(self, selection):
        with patch('aurora.core.orchestrator.RegistrarSession', return_value=self.registrar), \
                patch('aurora.core.orchestrator.PortalSession', return_value=self.portal), \
                patch('aurora.core.orchestrator.default_parsers', self.parsers), \
                patch('aurora.core.orchestrator.config.COURTESY_DELAY_MS', 500):
            return fetch_records('20200001', 'secret', '51', selection,
                                 throttle=self.throttle, vpn=self.vpn)

    def test_card_parse_error_still_logs_out_and_destroys(self):
        def broken(payload):
            raise ParseError(RecordKind.CARD, 'bad balance')

        self.parsers.json2card = broken

        with self.assertRaises(ParseError):
            self.run_fetch(select(RecordKind.GPA, RecordKind.CARD))

        self.assertEqual(self.log[-3:], [('portal', 'card'), ('portal', 'logout'), ('vpn', 'destroy')])
        self.assertIn(('registrar', 'logout'), self.log)
        self.assertFalse(self.registrar.is_logged_in())
        self.assertFalse(self.portal.is_logged_in())
        self.assertEqual(self.vpn.destroy_calls, 1)

    def test_failed_sign_out_does_not_mask_parse_error(self):
        def broken(payload):
            raise ParseError(RecordKind.CARD, 'bad balance')

        self.parsers.json2card = broken
        self.portal.logout_error = FetchError('portal', 'logout', 'Timeout')

        with self.assertRaises(ParseError) as ctx:
            self.run_fetch(select(RecordKind.CARD))

        self.assertEqual(ctx.exception.kind, RecordKind.CARD)
        self.assertEqual(self.log[-2:], [('portal', 'logout'), ('vpn', 'destroy')])
        self.assertFalse(self.portal.is_logged_in())

    def test_failed_sign_out_keeps_collected_records(self):
        self.registrar.logout_error = FetchError('registrar', 'logout', 'Timeout')
        self.portal.logout_error = FetchError('portal', 'logout', 'Timeout')

        results = self.run_fetch(select(RecordKind.GPA, RecordKind.STUDENT))

        self.assertEqual(results, {
            RecordKind.GPA: ('gpa', 'GPA'),
            RecordKind.STUDENT: ('student', 'STUDENT'),
        })
        self.assertEqual(self.log.count(('portal', 'logout')), 1)
        self.assertEqual(self.vpn.destroy_calls, 1)

    def test_registrar_failure_logs_out_registrar_only(self):
        self.parsers.exam_ids = None

        with self.assertRaises(ParseError):
            self.run_fetch(select(RecordKind.EXAM, RecordKind.STUDENT))

        self.assertEqual(self.log[-2:], [('registrar', 'logout'), ('vpn', 'destroy')])
        self.assertEqual(self.portal.login_calls, 0)

    def test_login_failure_destroys_gateway_once(self):
        self.registrar.login_ok = False

        with self.assertRaises(LoginError):
            self.run_fetch(select(RecordKind.COURSE_TABLE))

        self.assertEqual(self.vpn.destroy_calls, 1)

    def test_success_returns_results_and_destroys_gateway(self):
        results = self.run_fetch([RecordKind.STUDENT, RecordKind.LIBRARY_BOOK])

        self.assertEqual(results, {
            RecordKind.STUDENT: ('student', 'STUDENT'),
            RecordKind.LIBRARY_BOOK: ('library', 'LIBRARY'),
        })
        self.assertEqual(self.log[-1], ('vpn', 'destroy'))
        self.assertEqual(self.vpn.destroy_calls, 1)


if __name__ == '__main__':
    unittest.main()
