#
#
#

import logging
from dataclasses import replace
from urllib.parse import urlparse

from requests import RequestException, Session

from octodns import __VERSION__ as octodns_version

from . import __version__ as package_version
from .config import DOMAIN, DOMAIN_ID, RECORD_ID, FreeDNSConfig
from .exceptions import (
    FreeDNSAuthError,
    FreeDNSConfigError,
    FreeDNSProviderError,
    FreeDNSTransportError,
)
from .strategies import error_banner, parse_page, strategy_for


def find_record_ids(records, name):
    """Return the sorted ids of every record named exactly ``name``.

    Returns:
        Tuple of (ids, found)
    """
    ids = sorted(
        record_id
        for record_id, record in records.items()
        if record.name == name
    )
    return ids, bool(ids)


class FreeDNSClient(object):
    def __init__(self, config=None):
        self.log = logging.getLogger('FreeDNSClient')
        self.config = config or FreeDNSConfig()
        self.token = None

        session = Session()
        session.headers.update(
            {
                'User-Agent': f'octodns/{octodns_version} octodns-freedns/{package_version}'
            }
        )
        self._session = session

        tables = self.config.tables
        self._domains_page = strategy_for('domains', tables.domains)
        self._records_page = strategy_for('records', tables.records)
        self._details_page = strategy_for(
            'record_details', tables.record_details
        )
        self._result_page = strategy_for('result')

    @property
    def urls(self):
        return self.config.urls

    def _do(self, method, url, data=None):
        try:
            response = self._session.request(
                method, url, data=data, timeout=self.config.timeout
            )
        except RequestException as e:
            raise FreeDNSTransportError(None, str(e)) from e
        if not 200 <= response.status_code < 300:
            raise FreeDNSTransportError(response.status_code, response.reason)
        return response.text

    def _page(self, method, url, strategy, data=None, **kwargs):
        soup = parse_page(self._do(method, url, data))
        extracted = strategy.extract(soup, **kwargs)
        error = error_banner(soup)
        if error:
            self.log.debug('_page: url=%s, error=%s', url, error)
            raise FreeDNSProviderError(error, partial=extracted)
        return extracted

    def authenticate(self):
        auth = self.config.auth
        self.log.debug(
            'authenticate: login=%s, password=***, cookie=%s',
            auth.login,
            'set' if auth.cookie_value else 'unset',
        )
        if not auth.has_credentials and not auth.cookie_value:
            raise FreeDNSConfigError('Auth not found in configuration')

        if auth.cookie_value:
            self._session.cookies.set(
                auth.cookie_name,
                auth.cookie_value,
                domain=urlparse(self.urls.base).hostname,
            )

        data = {
            'username': auth.login or '',
            'password': auth.password or '',
            'action': 'auth',
        }
        self._do('POST', self.urls.url('login'), data)

        token = self._session_cookie(auth.cookie_name, auth.cookie_value)
        if not token:
            raise FreeDNSAuthError(
                f'Login did not set the {auth.cookie_name} cookie'
            )
        self.token = token
        return token

    def _session_cookie(self, name, seeded=None):
        # Seeded and server-set cookies can coexist on different domains,
        # the server-set one wins
        values = [c.value for c in self._session.cookies if c.name == name]
        for value in values:
            if value != seeded:
                return value
        return values[0] if values else None

    def domains(self):
        url = self.urls.url('get_domains')
        return self._page('GET', url, self._domains_page)

    def domain_create(self, name):
        self.log.debug('domain_create: name=%s', name)
        url = self.urls.url('create_domain', {DOMAIN: name})
        self._page('GET', url, self._result_page)

    def domain_delete(self, domain_id):
        self.log.debug('domain_delete: domain_id=%s', domain_id)
        url = self.urls.url('delete_domain', {DOMAIN_ID: domain_id})
        self._page('GET', url, self._result_page)

    def records(self, domain_id):
        url = self.urls.url('get_records', {DOMAIN_ID: domain_id})
        try:
            records = self._page('GET', url, self._records_page)
        except FreeDNSProviderError as e:
            e.partial = self._untruncate(e.partial or {})
            raise
        return self._untruncate(records)

    def _untruncate(self, records):
        ret = {}
        for record_id, record in records.items():
            if record.truncated:
                self.log.debug(
                    '_untruncate: fetching details for record_id=%s', record_id
                )
                try:
                    details = self.record_details(record_id)
                except FreeDNSProviderError as e:
                    if e.partial is None or not e.partial.value:
                        raise
                    details = e.partial
                record = replace(record, value=details.value)
            ret[record_id] = record
        return ret

    def record_details(self, record_id):
        url = self.urls.url('get_record_details', {RECORD_ID: record_id})
        return self._page('GET', url, self._details_page, record_id=record_id)

    def record_update(
        self, domain_id, record_id, name, _type, value, ttl, wildcard=False
    ):
        self.log.debug(
            'record_update: domain_id=%s, record_id=%s, name=%s, type=%s',
            domain_id,
            record_id,
            name,
            _type,
        )
        data = {
            'domain_id': domain_id,
            'subdomain': name,
            'type': _type,
            'address': value,
            'ttlalias': ttl,
        }
        # FreeDNS treats a save without data_id as a create
        if record_id:
            data['data_id'] = record_id
        if wildcard:
            data['wildcard'] = '1'
        url = self.urls.url('update_record')
        self._page('POST', url, self._result_page, data)

    def record_create(self, domain_id, name, _type, value, ttl, wildcard=False):
        self.record_update(
            domain_id, None, name, _type, value, ttl, wildcard=wildcard
        )

    def record_delete(self, record_id):
        self.log.debug('record_delete: record_id=%s', record_id)
        url = self.urls.url('delete_record', {RECORD_ID: record_id})
        self._page('POST', url, self._result_page, {'data_id[]': [record_id]})

    def find_record_ids(self, records, name):
        return find_record_ids(records, name)
