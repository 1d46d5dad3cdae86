"""
catbond_etl/collectors/artemis_collector.py

Scrapes the two Artemis.bm tables the dashboard is built from:
- the deal directory, served as HTML inside the JSON body of a
  Search & Filter Pro AJAX endpoint (table#table-deal)
- the cat bond losses page, a TablePress table embedded in the page
  (table#tablepress-2)

Both fetchers make a single attempt and never raise: any failure is logged
and turned into an empty row list so the build job can decide what to do.
"""

import logging
import re
from typing import Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from catbond_etl.config import ArtemisConfig
from catbond_etl.exceptions import TableFetchError

logger = logging.getLogger(__name__)

RawRow = Dict[str, str]

_NON_ALPHANUMERIC = re.compile(r'[^a-zA-Z0-9]+')


def normalize_column_name(name: str) -> str:
    """Lowercase a header and collapse non-alphanumeric runs to underscores"""
    return _NON_ALPHANUMERIC.sub('_', name.strip()).lower()


def extract_table_rows(html: str, table_id: str) -> List[RawRow]:
    """
    Extract the rows of ``table#<table_id>`` as a list of column -> text dicts

    Column names come from the header cells of the first row. Data rows whose
    cell count differs from the header's are discarded.
    """
    soup = BeautifulSoup(html, "lxml")
    table = soup.find("table", id=table_id)
    if table is None:
        raise TableFetchError(f"Table #{table_id} not found in page")

    table_rows = table.find_all("tr")
    if len(table_rows) <= 1:
        logger.warning(f"No data rows found in table #{table_id}")
        return []

    header_cells = table_rows[0].find_all("th")
    columns = [normalize_column_name(cell.get_text()) for cell in header_cells]
    if not columns:
        raise TableFetchError(f"Table #{table_id} has no header row")

    rows: List[RawRow] = []
    for table_row in table_rows[1:]:
        cells = table_row.find_all("td", recursive=False)
        if len(cells) != len(columns):
            continue
        rows.append({
            column: cell.get_text().strip()
            for column, cell in zip(columns, cells)
        })

    if not rows:
        logger.warning(f"No valid data rows found in table #{table_id}")
    return rows


def fetch_deal_table(config: Optional[ArtemisConfig] = None,
                     session: Optional[requests.Session] = None) -> List[RawRow]:
    """Fetch the deal directory rows from the Search & Filter AJAX endpoint"""
    config = config or ArtemisConfig()
    http = session or requests

    try:
        logger.info(f"Fetching deal directory from {config.deal_data_url}")
        response = http.post(
            config.deal_data_url,
            data="sf_data=results",
            headers=config.deal_headers(),
            timeout=config.timeout,
        )
        if response.status_code != 200:
            raise TableFetchError(f"Deal directory endpoint returned HTTP {response.status_code}")

        payload = response.json()
        if not isinstance(payload, dict) or 'results' not in payload:
            raise TableFetchError("No 'results' field in JSON response")

        rows = extract_table_rows(payload['results'] or "", config.deal_table_id)
        logger.info(f"✅ Extracted {len(rows)} deal rows")
        return rows

    except Exception as e:
        logger.error(f"❌ Error fetching deal directory: {str(e)}")
        return []


def fetch_loss_table(config: Optional[ArtemisConfig] = None,
                     session: Optional[requests.Session] = None) -> List[RawRow]:
    """Fetch the cat bond losses rows from the TablePress page"""
    config = config or ArtemisConfig()
    http = session or requests

    try:
        logger.info(f"Fetching cat bond losses from {config.losses_url}")
        response = http.get(
            config.losses_url,
            headers=config.loss_headers(),
            timeout=config.timeout,
        )
        if response.status_code != 200:
            raise TableFetchError(f"Cat bond losses page returned HTTP {response.status_code}")

        rows = extract_table_rows(response.text, config.loss_table_id)
        logger.info(f"✅ Extracted {len(rows)} loss rows")
        return rows

    except Exception as e:
        logger.error(f"❌ Error fetching cat bond losses: {str(e)}")
        return []
