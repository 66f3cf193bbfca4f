#
#
#

"""Extraction strategies for the pages of the FreeDNS web console.

FreeDNS has no API, only server rendered HTML. Each page type gets one
strategy that turns a parsed document into model objects. The markup is
undocumented and changes from time to time, so every positional assumption
(which table, which row) lives in a named constant below and can be
overridden per strategy instance.

Strategies never raise on unexpected markup: missing tables, rows or
attributes degrade to empty results and empty field values.
"""

from typing import Dict, Optional, Protocol

from bs4 import BeautifulSoup

from .models import DomainMap, Record, RecordDetails

# Index of the domain listing among all tables of /domain/. This moved from
# 5 to 6 when FreeDNS reworked the page.
DOMAINS_TABLE_INDEX = 6
# Index of the record listing among the tables inside forms on /subdomain/.
RECORDS_TABLE_INDEX = 0
# Index of the edit table among the tables inside forms on the edit page.
RECORD_DETAILS_TABLE_INDEX = 0
# Row of the edit table holding each field; the value is in the second cell.
RECORD_DETAILS_ROWS = {
    'type': 1,
    'host': 2,
    'domain': 3,
    'value': 4,
    'ttl': 5,
    'wildcard': 6,
}

ERROR_BANNER_SELECTOR = 'li font'
DOMAIN_SEPARATOR = '.'


def parse_page(html) -> BeautifulSoup:
    return BeautifulSoup(html or '', 'html.parser')


def error_banner(soup: BeautifulSoup) -> str:
    """Return the inline error text FreeDNS rendered, or ''."""
    texts = [
        font.get_text(' ', strip=True)
        for font in soup.select(ERROR_BANNER_SELECTOR)
    ]
    return ' '.join(t for t in texts if t)


def nth_table(soup, index: int, scope: Optional[str] = None):
    """Return the ``index``th table in document order, or None.

    With ``scope`` only tables nested in matching elements are counted.
    """
    if index < 0:
        return None
    if scope:
        tables = soup.select(f'{scope} table')
    else:
        tables = soup.find_all('table')
    if index >= len(tables):
        return None
    return tables[index]


def query_id(href) -> Optional[str]:
    """Pull the value of the first query parameter out of ``href``."""
    if not href or '=' not in href:
        return None
    value = href.split('=')[1].split('&')[0]
    return value or None


def _text(tag) -> str:
    if tag is None:
        return ''
    return tag.get_text(strip=True)


def _selected_option(cell):
    select = cell.find('select') if cell is not None else None
    if select is None:
        return None
    return select.find('option', selected=True) or select.find('option')


class PageStrategy(Protocol):
    """Protocol for page extraction strategies.

    ``extract`` must be a pure function of the parsed document.
    """

    def extract(self, soup: BeautifulSoup):
        ...


class DomainListStrategy:
    """Domain list on /domain/.

    Domain rows carry the name in bold inside a font tag; the first link of
    the same cell points at a URL whose query holds the domain id.
    """

    table_index = DOMAINS_TABLE_INDEX

    def __init__(self, table_index: int = DOMAINS_TABLE_INDEX):
        self.table_index = table_index

    def extract(self, soup: BeautifulSoup) -> DomainMap:
        domains = DomainMap()
        table = nth_table(soup, self.table_index)
        if table is None:
            return domains

        for font in table.select('tr td font'):
            bold = font.find('b')
            if bold is None:
                continue
            name = _text(bold)
            if DOMAIN_SEPARATOR not in name:
                continue
            cell = bold.parent.parent if bold.parent is not None else None
            anchor = cell.find('a') if cell is not None else None
            if anchor is None:
                continue
            domain_id = query_id(anchor.get('href'))
            if domain_id is None:
                continue
            domains.add(name, domain_id)

        return domains


class RecordListStrategy:
    """Record list on /subdomain/.

    A data row links its FQDN to the record's edit page; type and value are
    in the next two cells.
    """

    table_index = RECORDS_TABLE_INDEX

    def __init__(self, table_index: int = RECORDS_TABLE_INDEX):
        self.table_index = table_index

    def extract(self, soup: BeautifulSoup) -> Dict[str, Record]:
        records = {}
        table = nth_table(soup, self.table_index, scope='form')
        if table is None:
            return records

        for row in table.find_all('tr'):
            anchor = row.select_one('td a')
            if anchor is None:
                continue
            name = _text(anchor)
            if DOMAIN_SEPARATOR not in name:
                continue
            record_id = query_id(anchor.get('href'))
            if record_id is None:
                continue
            cell = anchor.find_parent('td')
            type_cell = cell.find_next_sibling('td')
            value_cell = (
                type_cell.find_next_sibling('td')
                if type_cell is not None
                else None
            )
            records[record_id] = Record(
                id=record_id,
                name=name,
                type=_text(type_cell),
                value=_text(value_cell),
            )

        return records


class RecordDetailsStrategy:
    """Edit form of a single record."""

    table_index = RECORD_DETAILS_TABLE_INDEX

    def __init__(
        self,
        table_index: int = RECORD_DETAILS_TABLE_INDEX,
        rows: Optional[Dict[str, int]] = None,
    ):
        self.table_index = table_index
        self.rows = dict(RECORD_DETAILS_ROWS)
        self.rows.update(rows or {})

    def _cell(self, rows, field):
        index = self.rows[field]
        if index >= len(rows):
            return None
        cells = rows[index].find_all('td')
        return cells[1] if len(cells) > 1 else None

    def extract(
        self, soup: BeautifulSoup, record_id: str = ''
    ) -> RecordDetails:
        table = nth_table(soup, self.table_index, scope='form')
        rows = table.find_all('tr') if table is not None else []

        option = _selected_option(self._cell(rows, 'type'))
        _type = option.get('value', _text(option)) if option else ''

        cell = self._cell(rows, 'host')
        field = cell.find('input') if cell is not None else None
        host = field.get('value', '') if field is not None else ''

        option = _selected_option(self._cell(rows, 'domain'))
        domain_id = option.get('value', '') if option else ''
        # Option labels look like 'example.com (public)'
        domain = _text(option).split(' ')[0] if option else ''

        cell = self._cell(rows, 'value')
        value = ''
        if cell is not None:
            field = cell.find('textarea')
            if field is not None:
                value = field.get_text().strip()
            else:
                field = cell.find('input')
                value = field.get('value', '') if field is not None else ''

        cell = self._cell(rows, 'ttl')
        field = cell.find('input') if cell is not None else None
        ttl = field.get('value', '') if field is not None else ''

        cell = self._cell(rows, 'wildcard')
        field = (
            cell.find('input', attrs={'type': 'checkbox'})
            if cell is not None
            else None
        )
        checked = field is not None and field.has_attr('checked')
        wildcard = '1' if checked else ''

        hidden = soup.find('input', attrs={'name': 'data_id'})
        if hidden is not None and hidden.get('value'):
            record_id = hidden['value']

        if host and domain:
            fqdn = f'{host}.{domain}'
        else:
            fqdn = domain or host

        return RecordDetails(
            id=record_id,
            fqdn=fqdn,
            type=_type,
            host=host,
            domain_id=domain_id,
            domain=domain,
            value=value,
            ttl=ttl,
            wildcard=wildcard,
        )


class ResultStrategy:
    """Pages returned by mutating requests; only the error banner matters."""

    def extract(self, soup: BeautifulSoup) -> None:
        return None


STRATEGIES = {
    'domains': DomainListStrategy,
    'records': RecordListStrategy,
    'record_details': RecordDetailsStrategy,
    'result': ResultStrategy,
}


def strategy_for(
    page_type: str, table_index: Optional[int] = None
) -> PageStrategy:
    """Build the strategy registered for ``page_type``.

    Raises:
        ValueError: If no strategy is registered for ``page_type``
    """
    try:
        cls = STRATEGIES[page_type]
    except KeyError:
        raise ValueError(f"Unknown page type '{page_type}'") from None
    if table_index is None or not hasattr(cls, 'table_index'):
        return cls()
    return cls(table_index=table_index)
