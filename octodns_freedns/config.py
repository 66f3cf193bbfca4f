#
#
#

"""Configuration loading and URL templates for the FreeDNS web console.

Values are layered: built-in defaults, then a YAML file, then environment
variables (``URLS_*``, ``AUTH_*``, ``TABLES_*`` and ``TIMEOUT``).
"""

import logging
from typing import Mapping, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import FreeDNSConfigError
from .strategies import (
    DOMAINS_TABLE_INDEX,
    RECORD_DETAILS_TABLE_INDEX,
    RECORDS_TABLE_INDEX,
)

DOMAIN = '{DOMAIN}'
DOMAIN_ID = '{DOMAIN_ID}'
RECORD_ID = '{RECORD_ID}'

DEFAULT_CONFIG_FILE = 'config.yaml'
DEFAULT_COOKIE_NAME = 'dns_cookie'
DEFAULT_TIMEOUT = 30

DEFAULT_URLS = {
    'base': 'https://freedns.afraid.org',
    'login': '/zc.php?step=2',
    'get_domains': '/domain/',
    'create_domain': f'/domain/domaincheck.php?domain={DOMAIN}',
    'delete_domain': f'/domain/delete.php?domain_id={DOMAIN_ID}',
    'get_records': f'/subdomain/?limit={DOMAIN_ID}',
    'get_record_details': f'/subdomain/edit.php?data_id={RECORD_ID}',
    'update_record': '/subdomain/save.php?step=2',
    'delete_record': (
        f'/subdomain/delete2.php?data_id%5B%5D={RECORD_ID}'
        '&submit=delete+selected'
    ),
}

log = logging.getLogger('FreeDNSConfig')


def resolve_url(template: str, params: Mapping[str, str]) -> str:
    """Substitute every occurrence of each placeholder in ``template``.

    Placeholders without a value are left in place.
    """
    for placeholder, value in params.items():
        template = template.replace(placeholder, value)
    return template


def _setting(name, default, **kwargs):
    # config.yaml files written for the Go client use lower-cased field
    # names without separators, e.g. getdomains or cookiename
    return Field(
        default,
        validation_alias=AliasChoices(name, name.replace('_', '')),
        **kwargs,
    )


class _Section(BaseModel):
    model_config = ConfigDict(extra='ignore')


class FreeDNSUrls(_Section):
    base: str = _setting('base', DEFAULT_URLS['base'])
    login: str = _setting('login', DEFAULT_URLS['login'])
    get_domains: str = _setting('get_domains', DEFAULT_URLS['get_domains'])
    create_domain: str = _setting(
        'create_domain', DEFAULT_URLS['create_domain']
    )
    delete_domain: str = _setting(
        'delete_domain', DEFAULT_URLS['delete_domain']
    )
    get_records: str = _setting('get_records', DEFAULT_URLS['get_records'])
    get_record_details: str = _setting(
        'get_record_details', DEFAULT_URLS['get_record_details']
    )
    update_record: str = _setting(
        'update_record', DEFAULT_URLS['update_record']
    )
    delete_record: str = _setting(
        'delete_record', DEFAULT_URLS['delete_record']
    )

    def url(self, name, params=None):
        if name not in DEFAULT_URLS:
            raise FreeDNSConfigError(f'Unknown url template: {name}')
        return self.base + resolve_url(getattr(self, name), params or {})


class FreeDNSAuth(_Section):
    login: Optional[str] = _setting('login', None)
    password: Optional[str] = _setting('password', None, repr=False)
    cookie_name: str = _setting(
        'cookie_name', DEFAULT_COOKIE_NAME, min_length=1
    )
    cookie_value: Optional[str] = _setting('cookie_value', None, repr=False)

    @property
    def has_credentials(self):
        return bool(self.login and self.password)


class FreeDNSTables(_Section):
    domains: int = Field(DOMAINS_TABLE_INDEX, ge=0)
    records: int = Field(RECORDS_TABLE_INDEX, ge=0)
    record_details: int = Field(RECORD_DETAILS_TABLE_INDEX, ge=0)


class FreeDNSConfig(BaseSettings):
    model_config = SettingsConfigDict(
        extra='ignore',
        case_sensitive=False,
        env_nested_delimiter='_',
        env_nested_max_split=1,
    )

    urls: FreeDNSUrls = Field(default_factory=FreeDNSUrls)
    auth: FreeDNSAuth = Field(default_factory=FreeDNSAuth)
    tables: FreeDNSTables = Field(default_factory=FreeDNSTables)
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment wins over the file contents handed in by load()
        return (env_settings, init_settings)

    @classmethod
    def load(cls, path=DEFAULT_CONFIG_FILE):
        """Build a config from defaults, ``path`` and the environment.

        A missing file is not an error.
        """
        data = cls._read_file(path) if path else {}
        try:
            return cls(**data)
        except ValidationError as e:
            raise FreeDNSConfigError(f'Invalid configuration: {e}') from e

    @staticmethod
    def _read_file(path):
        try:
            with open(path, encoding='utf-8') as fh:
                data = yaml.safe_load(fh)
        except FileNotFoundError:
            log.debug('_read_file: %s not found, skipping', path)
            return {}
        except yaml.YAMLError as e:
            raise FreeDNSConfigError(f'Unable to parse {path}: {e}') from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise FreeDNSConfigError(f'{path} must contain a mapping')
        return data
