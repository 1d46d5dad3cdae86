"""
catbond_etl/config.py

Environment-driven configuration for the Artemis scraper and snapshot database
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.getenv('CATBOND_DATA_DIR', 'data'))

DATABASE_URL = os.getenv(
    'DATABASE_URL',
    f"sqlite:///{(DATA_DIR / 'catbond_snapshot.db').as_posix()}"
)

BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


@dataclass
class ArtemisConfig:
    """Configuration for the Artemis.bm deal directory and losses scrapes"""

    base_url: str = field(default_factory=lambda: os.getenv('ARTEMIS_BASE_URL', 'https://www.artemis.bm'))
    search_filter_id: int = field(default_factory=lambda: int(os.getenv('ARTEMIS_SFID', '59514')))
    timeout: float = field(default_factory=lambda: float(os.getenv('ARTEMIS_TIMEOUT', '30')))
    user_agent: str = BROWSER_USER_AGENT

    # Table ids on the two pages
    deal_table_id: str = "table-deal"
    loss_table_id: str = "tablepress-2"

    def __post_init__(self):
        self.base_url = self.base_url.rstrip('/')

    @property
    def deal_data_url(self) -> str:
        """Search & Filter Pro AJAX endpoint behind the deal directory"""
        return f"{self.base_url}/?sfid={self.search_filter_id}&sf_action=get_data&sf_data=results"

    @property
    def deal_directory_url(self) -> str:
        return f"{self.base_url}/deal-directory/"

    @property
    def losses_url(self) -> str:
        return f"{self.base_url}/cat-bond-losses/"

    def deal_headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.user_agent,
            'Referer': self.deal_directory_url,
            'Content-Type': 'application/x-www-form-urlencoded',
        }

    def loss_headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.user_agent,
            'Referer': f"{self.base_url}/",
        }
