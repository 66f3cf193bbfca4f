#
#
#

import logging
from collections import defaultdict

from octodns.provider.base import BaseProvider
from octodns.record import Record, Update

from .exceptions import (
    FreeDNSAuthError,
    FreeDNSClientException,
    FreeDNSConfigError,
    FreeDNSDomainNotFound,
    FreeDNSProviderError,
    FreeDNSTransportError,
)

__version__ = '0.1.0'

from .client import FreeDNSClient, find_record_ids  # noqa: E402
from .config import FreeDNSConfig  # noqa: E402

__all__ = [
    'FreeDNSAuthError',
    'FreeDNSClient',
    'FreeDNSClientException',
    'FreeDNSConfig',
    'FreeDNSConfigError',
    'FreeDNSDomainNotFound',
    'FreeDNSProvider',
    'FreeDNSProviderError',
    'FreeDNSTransportError',
    'find_record_ids',
]


class FreeDNSProvider(BaseProvider):
    SUPPORTS_GEO = False
    SUPPORTS_DYNAMIC = False
    SUPPORTS_ROOT_NS = False
    SUPPORTS = set(('A', 'AAAA', 'CNAME', 'MX', 'NS', 'TXT'))

    def __init__(
        self,
        id,
        login=None,
        password=None,
        cookie_value=None,
        config_file=None,
        default_ttl=3600,
        *args,
        **kwargs,
    ):
        self.log = logging.getLogger(f'FreeDNSProvider[{id}]')
        self.log.debug(
            '__init__: id=%s, login=%s, password=***, config_file=%s',
            id,
            login,
            config_file,
        )
        super().__init__(id, *args, **kwargs)

        config = FreeDNSConfig.load(path=config_file)
        if login is not None:
            config.auth.login = login
        if password is not None:
            config.auth.password = password
        if cookie_value is not None:
            config.auth.cookie_value = cookie_value

        self.default_ttl = default_ttl
        self._client = FreeDNSClient(config)

        # Cache structures
        self._zone_records = {}

    def _ensure_session(self):
        if self._client.token is None:
            self._client.authenticate()

    def _domains(self):
        self._ensure_session()
        return self._client.domains()

    def _append_dot(self, value):
        if value.endswith('.'):
            return value
        return f'{value}.'

    def _strip_dot(self, value):
        return value[:-1] if value.endswith('.') else value

    def _host(self, record, domain):
        if record.name == domain:
            return ''
        suffix = f'.{domain}'
        if record.name.endswith(suffix):
            return record.name[: -len(suffix)]
        return None

    def _data_for_multiple(self, _type, records):
        return {
            'ttl': self.default_ttl,
            'type': _type,
            'values': [record.value for record in records],
        }

    _data_for_A = _data_for_multiple
    _data_for_AAAA = _data_for_multiple

    def _data_for_CNAME(self, _type, records):
        return {
            'ttl': self.default_ttl,
            'type': _type,
            'value': self._append_dot(records[0].value),
        }

    def _data_for_MX(self, _type, records):
        values = []
        for record in records:
            # FreeDNS renders MX destinations as 'preference:exchange'
            preference, _, exchange = record.value.partition(':')
            try:
                preference = int(preference)
            except ValueError:
                self.log.warning(
                    '_data_for_MX: skipping malformed MX value %r',
                    record.value,
                )
                continue
            values.append(
                {
                    'preference': preference,
                    'exchange': self._append_dot(exchange.strip()),
                }
            )
        return {'ttl': self.default_ttl, 'type': _type, 'values': values}

    def _data_for_NS(self, _type, records):
        return {
            'ttl': self.default_ttl,
            'type': _type,
            'values': [self._append_dot(record.value) for record in records],
        }

    def _data_for_TXT(self, _type, records):
        values = []
        for record in records:
            value = record.value
            if len(value) > 1 and value[0] == value[-1] == '"':
                value = value[1:-1]
            values.append(value.replace(';', '\\;'))
        return {'ttl': self.default_ttl, 'type': _type, 'values': values}

    def list_zones(self):
        self.log.debug('list_zones:')
        return sorted(f'{name}.' for name in self._domains())

    def zone_records(self, zone):
        if zone.name not in self._zone_records:
            domain_id = self._domains().id_for(zone.name[:-1])
            if domain_id is None:
                return []
            records = self._client.records(domain_id)
            self._zone_records[zone.name] = list(records.values())

        return self._zone_records[zone.name]

    def populate(self, zone, target=False, lenient=False):
        self.log.debug(
            'populate: name=%s, target=%s, lenient=%s',
            zone.name,
            target,
            lenient,
        )

        domain = zone.name[:-1]
        values = defaultdict(lambda: defaultdict(list))
        for record in self.zone_records(zone):
            if record.type not in self.SUPPORTS:
                self.log.warning(
                    'populate: skipping unsupported %s record', record.type
                )
                continue
            host = self._host(record, domain)
            if host is None:
                self.log.warning(
                    'populate: skipping %s, not in %s', record.name, domain
                )
                continue
            if record.type == 'NS' and host == '':
                self.log.debug('populate: skipping root NS %s', record.value)
                continue
            values[host][record.type].append(record)

        before = len(zone.records)
        for name, types in values.items():
            for _type, records in types.items():
                data_for = getattr(self, f'_data_for_{_type}')
                data = data_for(_type, records)
                if 'values' in data and not data['values']:
                    continue
                record = Record.new(
                    zone,
                    name,
                    data,
                    source=self,
                    lenient=lenient,
                )
                zone.add_record(record, lenient=lenient)

        exists = zone.name in self._zone_records
        self.log.info(
            'populate:   found %s records, exists=%s',
            len(zone.records) - before,
            exists,
        )
        return exists

    def _include_change(self, change):
        if isinstance(change, Update):
            existing = change.existing.data
            new = change.new.data
            # The record listing carries no TTL
            for key in ('ttl', 'octodns'):
                existing.pop(key, None)
                new.pop(key, None)
            if existing == new:
                self.log.info(
                    '_include_change: ignoring ttl only change for %s %s',
                    change.new.fqdn,
                    change.new._type,
                )
                return False
        return True

    def _params_for_multiple(self, record):
        for value in record.values:
            yield {
                'value': value,
                'name': record.name,
                'ttl': record.ttl,
                'type': record._type,
            }

    _params_for_A = _params_for_multiple
    _params_for_AAAA = _params_for_multiple

    def _params_for_CNAME(self, record):
        yield {
            'value': self._strip_dot(record.value),
            'name': record.name,
            'ttl': record.ttl,
            'type': record._type,
        }

    def _params_for_MX(self, record):
        for value in record.values:
            exchange = self._strip_dot(value.exchange)
            yield {
                'value': f'{value.preference}:{exchange}',
                'name': record.name,
                'ttl': record.ttl,
                'type': record._type,
            }

    def _params_for_NS(self, record):
        for value in record.values:
            yield {
                'value': self._strip_dot(value),
                'name': record.name,
                'ttl': record.ttl,
                'type': record._type,
            }

    def _params_for_TXT(self, record):
        for value in record.values:
            value = value.replace('\\;', ';')
            yield {
                'value': f'"{value}"',
                'name': record.name,
                'ttl': record.ttl,
                'type': record._type,
            }

    def _apply_Create(self, domain_id, change):
        new = change.new
        params_for = getattr(self, f'_params_for_{new._type}')
        for params in params_for(new):
            self._client.record_create(
                domain_id,
                params['name'],
                params['type'],
                params['value'],
                str(params['ttl']),
            )

    def _apply_Update(self, domain_id, change):
        # FreeDNS saves one value per record; replace the whole set
        self._apply_Delete(domain_id, change)
        self._apply_Create(domain_id, change)

    def _apply_Delete(self, domain_id, change):
        existing = change.existing
        zone = existing.zone
        domain = zone.name[:-1]
        for record in self.zone_records(zone):
            if (
                existing.name == self._host(record, domain)
                and existing._type == record.type
            ):
                self._client.record_delete(record.id)

    def _apply(self, plan):
        desired = plan.desired
        changes = plan.changes
        self.log.debug(
            '_apply: zone=%s, len(changes)=%d', desired.name, len(changes)
        )

        domain = desired.name[:-1]
        domain_id = self._domains().id_for(domain)
        if domain_id is None:
            self.log.debug('_apply:   no matching domain, creating')
            self._client.domain_create(domain)
            domain_id = self._client.domains().id_for(domain)
            if domain_id is None:
                raise FreeDNSDomainNotFound(domain)

        for change in changes:
            class_name = change.__class__.__name__
            getattr(self, f'_apply_{class_name}')(domain_id, change)

        # Clear out the cache if any
        self._zone_records.pop(desired.name, None)
