#
# Tests for the octoDNS provider on top of a mocked FreeDNS client
#

from unittest import TestCase
from unittest.mock import Mock, call

from octodns.record import Record
from octodns.zone import Zone

from octodns_freedns import FreeDNSDomainNotFound, FreeDNSProvider
from octodns_freedns.models import DomainMap
from octodns_freedns.models import Record as FreeDNSRecord


def rows(*records):
    return {r[0]: FreeDNSRecord(*r) for r in records}


class TestFreeDNSProvider(TestCase):
    def _provider_with_mock_client(self, domains=None, records=None):
        provider = FreeDNSProvider(
            'test', login='me@example.com', password='pw', default_ttl=600
        )
        client = Mock()
        client.domains.return_value = (
            DomainMap({'unit.tests': '1001'}) if domains is None else domains
        )
        client.records.return_value = records or {}
        provider._client = client
        return provider, client

    def test_init_passes_credentials(self):
        provider = FreeDNSProvider(
            'test', login='me@example.com', password='pw', cookie_value='c'
        )
        auth = provider._client.config.auth
        self.assertEqual('me@example.com', auth.login)
        self.assertEqual('pw', auth.password)
        self.assertEqual('c', auth.cookie_value)
        self.assertIsNone(provider._client.token)

    def test_authenticates_lazily(self):
        provider, client = self._provider_with_mock_client()
        client.token = None
        provider.list_zones()
        client.authenticate.assert_called_once_with()

        client.token = 'session'
        client.authenticate.reset_mock()
        provider.list_zones()
        client.authenticate.assert_not_called()

    def test_list_zones(self):
        provider, client = self._provider_with_mock_client(
            domains=DomainMap({'kube.ml': '2', 'example.com': '1'})
        )
        self.assertEqual(['example.com.', 'kube.ml.'], provider.list_zones())

    def test_populate(self):
        provider, client = self._provider_with_mock_client(
            records=rows(
                ('1', 'unit.tests', 'A', '1.2.3.4'),
                ('2', 'unit.tests', 'A', '1.2.3.5'),
                ('3', 'www.unit.tests', 'CNAME', 'unit.tests'),
                ('4', 'unit.tests', 'MX', '10:mx.unit.tests'),
                ('5', 'txt.unit.tests', 'TXT', '"v=spf1 a; -all"'),
                ('6', 'sub.unit.tests', 'NS', 'ns1.example.net'),
                ('7', 'v6.unit.tests', 'AAAA', '2001:db8::1'),
                ('8', 'loc.unit.tests', 'LOC', '52 22 23.000 N'),
                ('9', 'elsewhere.example.com', 'A', '9.9.9.9'),
                ('10', 'unit.tests', 'NS', 'ns1.afraid.org'),
            )
        )

        zone = Zone('unit.tests.', [])
        self.assertTrue(provider.populate(zone))
        client.records.assert_called_once_with('1001')

        by_key = {(r.name, r._type): r for r in zone.records}
        self.assertEqual(
            {
                ('', 'A'),
                ('www', 'CNAME'),
                ('', 'MX'),
                ('txt', 'TXT'),
                ('sub', 'NS'),
                ('v6', 'AAAA'),
            },
            set(by_key),
        )
        self.assertEqual(['1.2.3.4', '1.2.3.5'], by_key[('', 'A')].values)
        self.assertEqual(600, by_key[('', 'A')].ttl)
        self.assertEqual('unit.tests.', by_key[('www', 'CNAME')].value)
        mx = by_key[('', 'MX')].values[0]
        self.assertEqual(10, mx.preference)
        self.assertEqual('mx.unit.tests.', mx.exchange)
        self.assertEqual(['v=spf1 a\\; -all'], by_key[('txt', 'TXT')].values)
        self.assertEqual(['ns1.example.net.'], by_key[('sub', 'NS')].values)

    def test_populate_missing_domain(self):
        provider, client = self._provider_with_mock_client(domains=DomainMap())
        zone = Zone('unit.tests.', [])
        self.assertFalse(provider.populate(zone))
        self.assertEqual(0, len(zone.records))
        client.records.assert_not_called()

    def test_apply_create(self):
        provider, client = self._provider_with_mock_client()

        zone = Zone('unit.tests.', [])
        zone.add_record(
            Record.new(
                zone,
                '',
                {'ttl': 300, 'type': 'A', 'values': ['1.2.3.4', '1.2.3.5']},
            )
        )
        zone.add_record(
            Record.new(
                zone,
                'www',
                {'ttl': 300, 'type': 'CNAME', 'value': 'unit.tests.'},
            )
        )
        zone.add_record(
            Record.new(
                zone,
                '',
                {
                    'ttl': 300,
                    'type': 'MX',
                    'value': {'preference': 10, 'exchange': 'mx.unit.tests.'},
                },
            )
        )
        zone.add_record(
            Record.new(
                zone, 'txt', {'ttl': 300, 'type': 'TXT', 'value': 'a\\;b'}
            )
        )

        plan = provider.plan(zone)
        self.assertEqual(4, len(plan.changes))
        self.assertEqual(4, provider.apply(plan))

        client.record_create.assert_has_calls(
            [
                call('1001', '', 'A', '1.2.3.4', '300'),
                call('1001', '', 'A', '1.2.3.5', '300'),
                call('1001', 'www', 'CNAME', 'unit.tests', '300'),
                call('1001', '', 'MX', '10:mx.unit.tests', '300'),
                call('1001', 'txt', 'TXT', '"a;b"', '300'),
            ],
            any_order=True,
        )
        client.record_delete.assert_not_called()
        client.domain_create.assert_not_called()

    def test_apply_update_and_delete(self):
        provider, client = self._provider_with_mock_client(
            records=rows(
                ('r1', 'www.unit.tests', 'A', '1.2.3.4'),
                ('r2', 'gone.unit.tests', 'A', '5.5.5.5'),
                ('r3', 'gone.unit.tests', 'A', '6.6.6.6'),
            )
        )

        zone = Zone('unit.tests.', [])
        zone.add_record(
            Record.new(
                zone, 'www', {'ttl': 600, 'type': 'A', 'value': '2.2.2.2'}
            )
        )

        plan = provider.plan(zone)
        self.assertTrue(plan.exists)
        self.assertEqual(2, len(plan.changes))
        provider.apply(plan)

        client.record_delete.assert_has_calls(
            [call('r1'), call('r2'), call('r3')], any_order=True
        )
        self.assertEqual(3, client.record_delete.call_count)
        client.record_create.assert_called_once_with(
            '1001', 'www', 'A', '2.2.2.2', '600'
        )
        # Listing used for the plan is dropped after apply
        self.assertNotIn('unit.tests.', provider._zone_records)

    def test_apply_creates_missing_domain(self):
        provider, client = self._provider_with_mock_client()
        client.domains.side_effect = [
            DomainMap(),
            DomainMap(),
            DomainMap({'unit.tests': '1001'}),
        ]

        zone = Zone('unit.tests.', [])
        zone.add_record(
            Record.new(
                zone, 'www', {'ttl': 300, 'type': 'A', 'value': '1.1.1.1'}
            )
        )
        plan = provider.plan(zone)
        self.assertFalse(plan.exists)
        provider.apply(plan)

        client.domain_create.assert_called_once_with('unit.tests')
        client.record_create.assert_called_once_with(
            '1001', 'www', 'A', '1.1.1.1', '300'
        )

    def test_apply_domain_never_appears(self):
        provider, client = self._provider_with_mock_client(domains=DomainMap())

        zone = Zone('unit.tests.', [])
        zone.add_record(
            Record.new(
                zone, 'www', {'ttl': 300, 'type': 'A', 'value': '1.1.1.1'}
            )
        )
        plan = provider.plan(zone)
        with self.assertRaises(FreeDNSDomainNotFound) as ctx:
            provider.apply(plan)
        self.assertIn('unit.tests', str(ctx.exception))
        client.record_create.assert_not_called()

    def test_ttl_only_difference_is_not_planned(self):
        provider, client = self._provider_with_mock_client(
            records=rows(
                ('r1', 'www.unit.tests', 'A', '1.2.3.4'),
                ('r2', 'unit.tests', 'MX', '10:mx.unit.tests'),
            )
        )

        zone = Zone('unit.tests.', [])
        zone.add_record(
            Record.new(
                zone, 'www', {'ttl': 300, 'type': 'A', 'value': '1.2.3.4'}
            )
        )
        zone.add_record(
            Record.new(
                zone,
                '',
                {
                    'ttl': 60,
                    'type': 'MX',
                    'value': {'preference': 10, 'exchange': 'mx.unit.tests.'},
                },
            )
        )
        self.assertIsNone(provider.plan(zone))

    def test_value_change_with_ttl_is_planned(self):
        provider, client = self._provider_with_mock_client(
            records=rows(('r1', 'www.unit.tests', 'A', '1.2.3.4'))
        )

        zone = Zone('unit.tests.', [])
        zone.add_record(
            Record.new(
                zone, 'www', {'ttl': 300, 'type': 'A', 'value': '4.3.2.1'}
            )
        )
        plan = provider.plan(zone)
        self.assertEqual(1, len(plan.changes))
        provider.apply(plan)
        client.record_delete.assert_called_once_with('r1')
        client.record_create.assert_called_once_with(
            '1001', 'www', 'A', '4.3.2.1', '300'
        )
