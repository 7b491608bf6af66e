"""
Configuration management for the Load Responder application.

Values come from the environment (optionally via a .env file) and are
collected into explicit configuration objects that callers hand to the
formatter, the lookup provider and the database manager.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


@dataclass
class CompanyConfig:
    """Branding used in reply templates and signatures."""
    name: str = 'Your Company'
    signature: Optional[str] = None
    phone: Optional[str] = None
    follow_up_window: str = '15 minutes'


@dataclass
class Auth0Config:
    """Auth0 application used to obtain QuoteFactory tokens."""
    domain: Optional[str]
    client_id: Optional[str]
    client_secret: Optional[str]
    audience: Optional[str] = None

    def __post_init__(self):
        if self.audience is None and self.domain:
            self.audience = f"https://{self.domain}/api/v2/"

    @property
    def is_configured(self) -> bool:
        return bool(self.domain and self.client_id and self.client_secret)


@dataclass
class QuoteFactoryConfig:
    """QuoteFactory API connection settings."""
    username: Optional[str]
    password: Optional[str]
    base_url: str = 'https://api.quotefactory.com'
    timeout_ms: int = 30000
    enabled: bool = True
    auth0: Auth0Config = field(default_factory=lambda: Auth0Config(None, None, None))

    @property
    def is_configured(self) -> bool:
        """Lookups are attempted only when enabled and fully credentialed."""
        return bool(self.enabled and self.username and self.password and self.auth0.is_configured)


@dataclass
class DatabaseConfig:
    """Processing-history database connection."""
    url: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'DatabaseConfig':
        url = os.getenv('DATABASE_URL')
        if url:
            return cls(url=url)

        name = os.getenv('DB_NAME')
        if not name:
            return cls(url=None)

        host = os.getenv('DB_HOST', 'localhost')
        port = int(os.getenv('DB_PORT', '5432'))
        user = os.getenv('DB_USER')
        password = os.getenv('DB_PASSWORD')
        return cls(url=f"postgresql://{user}:{password}@{host}:{port}/{name}")


@dataclass
class Config:
    """Main application configuration."""
    # Application paths
    base_dir: Path
    logs_dir: Path
    log_level: str

    # Component configurations
    company: CompanyConfig
    quotefactory: QuoteFactoryConfig
    db: DatabaseConfig

    @classmethod
    def load(cls) -> 'Config':
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent

        auth0 = Auth0Config(
            domain=os.getenv('AUTH0_DOMAIN'),
            client_id=os.getenv('AUTH0_CLIENT_ID'),
            client_secret=os.getenv('AUTH0_CLIENT_SECRET'),
            audience=os.getenv('AUTH0_AUDIENCE')
        )

        return cls(
            base_dir=base_dir,
            logs_dir=base_dir / 'logs',
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),

            company=CompanyConfig(
                name=os.getenv('COMPANY_NAME', 'Your Company'),
                signature=os.getenv('COMPANY_SIGNATURE'),
                phone=os.getenv('COMPANY_PHONE'),
                follow_up_window=os.getenv('FOLLOW_UP_WINDOW', '15 minutes')
            ),

            quotefactory=QuoteFactoryConfig(
                username=os.getenv('QUOTEFACTORY_USERNAME'),
                password=os.getenv('QUOTEFACTORY_PASSWORD'),
                base_url=os.getenv('QUOTEFACTORY_API_BASE', 'https://api.quotefactory.com'),
                timeout_ms=int(os.getenv('LOOKUP_TIMEOUT_MS', '30000')),
                enabled=_env_flag('ENABLE_QUOTEFACTORY_LOOKUP', True),
                auth0=auth0
            ),

            db=DatabaseConfig.from_env()
        )
