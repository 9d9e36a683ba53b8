"""
AMM Adapter settings

Everything is read from the process environment, with a ``.env`` next to the
package picked up on import. Sections mirror the layers that consume them
(chain, contracts, nlp, trading, evm, market, logging).
"""

import os
import logging
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

_TRUTHY = ("true", "1", "yes", "on")


def _load_env_file():
    """Load <repo>/.env if present; real environment variables take precedence"""
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)


_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    value = os.getenv(key)
    return default if value is None else value


def _parse_env(key: str, default: T, cast: Callable[[str], T]) -> T:
    """Typed env lookup; unparsable values are logged and replaced by ``default``"""
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"{key}={raw!r} is not a valid {cast.__name__}, falling back to {default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    return _parse_env(key, default, int)


def _get_env_float(key: str, default: float) -> float:
    return _parse_env(key, default, float)


def _get_env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def _get_env_list(key: str) -> List[str]:
    """Comma-separated list, empty entries dropped"""
    return [item.strip() for item in os.getenv(key, "").split(",") if item.strip()]


@dataclass
class ChainConfig:
    """JSON-RPC endpoint configuration"""
    rpc_url: str = field(default_factory=lambda: _get_env("AMM_RPC_URL", "http://localhost:8545"))
    # None = detect from the node
    chain_id: Optional[int] = field(default_factory=lambda: _get_env_int("AMM_CHAIN_ID", 0) or None)
    timeout: int = field(default_factory=lambda: _get_env_int("AMM_RPC_TIMEOUT", 30))


@dataclass
class ContractsConfig:
    """Deployed contract addresses (must be configured in .env)"""
    weth: str = field(default_factory=lambda: _get_env("WETH_ADDRESS", ""))
    factory: str = field(default_factory=lambda: _get_env("FACTORY_ADDRESS", ""))
    router: str = field(default_factory=lambda: _get_env("ROUTER_ADDRESS", ""))
    test_token: str = field(default_factory=lambda: _get_env("TEST_TOKEN_ADDRESS", ""))
    test_token2: str = field(default_factory=lambda: _get_env("TEST_TOKEN2_ADDRESS", ""))
    # Extra ERC20 addresses for the token registry
    extra_tokens: List[str] = field(default_factory=lambda: _get_env_list("AMM_TOKEN_ADDRESSES"))

    @property
    def token_addresses(self) -> List[str]:
        """Registry token addresses in display order, WETH first, blanks dropped"""
        ordered = [self.weth, self.test_token, self.test_token2, *self.extra_tokens]
        seen = set()
        result = []
        for address in ordered:
            if address and address.lower() not in seen:
                seen.add(address.lower())
                result.append(address)
        return result


@dataclass
class NlpConfig:
    """Chat-completion service configuration for the intent resolver"""
    base_url: str = field(default_factory=lambda: _get_env("NLP_BASE_URL", "https://api.openai.com/v1"))
    api_key: Optional[str] = field(default_factory=lambda: _get_env("OPENAI_API_KEY", None))
    model: str = field(default_factory=lambda: _get_env("NLP_MODEL", "gpt-4.1-nano-2025-04-14"))
    temperature: float = field(default_factory=lambda: _get_env_float("NLP_TEMPERATURE", 0.0))
    timeout: float = field(default_factory=lambda: _get_env_float("NLP_TIMEOUT", 30.0))


@dataclass
class TradingConfig:
    """Default trading parameters"""
    # 0.5%
    default_slippage_bps: int = field(default_factory=lambda: _get_env_int("DEFAULT_SLIPPAGE_BPS", 50))
    # Pair swap fee applied by the router (0.3%)
    fee_bps: int = field(default_factory=lambda: _get_env_int("AMM_FEE_BPS", 30))


@dataclass
class EVMConfig:
    """Transaction building configuration"""
    # Transaction deadline in seconds (default: 20 minutes)
    tx_deadline_seconds: int = field(default_factory=lambda: _get_env_int("EVM_TX_DEADLINE_SECONDS", 1200))
    approve_gas_limit: int = field(default_factory=lambda: _get_env_int("EVM_APPROVE_GAS_LIMIT", 100_000))
    swap_gas_limit: int = field(default_factory=lambda: _get_env_int("EVM_SWAP_GAS_LIMIT", 300_000))
    lp_gas_limit: int = field(default_factory=lambda: _get_env_int("EVM_LP_GAS_LIMIT", 500_000))
    # Priority fee (tip) in gwei
    priority_fee_gwei: float = field(default_factory=lambda: _get_env_float("EVM_PRIORITY_FEE_GWEI", 0.1))
    confirmation_timeout: int = field(default_factory=lambda: _get_env_int("EVM_CONFIRMATION_TIMEOUT", 120))


@dataclass
class MarketConfig:
    """Pool directory configuration"""
    pool_fetch_workers: int = field(default_factory=lambda: _get_env_int("POOL_FETCH_WORKERS", 8))


def _default_log_file() -> str:
    """amm_adapter/log/amm_adapter_<UTC timestamp>.log"""
    from datetime import datetime, timezone
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return str(Path(__file__).parent / "log" / f"amm_adapter_{stamp}.log")


@dataclass
class LoggingConfig:
    """
    Handlers for the ``amm_adapter`` logger tree.

    File logging is off unless LOG_FILE is set or enable_file_logging() is called.

    Environment variables:
        LOG_FILE: Rotating log file path
        LOG_LEVEL: Level name (default: INFO)
        LOG_FORMAT: logging.Formatter format string
        LOG_CONSOLE: Also log to stderr (default: true)
        LOG_MAX_BYTES: Rotation size (default: 10MB)
        LOG_BACKUP_COUNT: Rotated files kept (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", ""))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT", "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Numeric level; unknown names mean INFO"""
        value = logging.getLevelName(self.log_level.upper())
        return value if isinstance(value, int) else logging.INFO


@dataclass
class Config:
    """
    All settings, one section per layer

    Usage:
        from amm_adapter.config import config

        config.chain.rpc_url
        config.contracts.router
        config.trading.default_slippage_bps
    """
    chain: ChainConfig = field(default_factory=ChainConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    nlp: NlpConfig = field(default_factory=NlpConfig)
    trading: TradingConfig = field(default_factory=TradingConfig)
    evm: EVMConfig = field(default_factory=EVMConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Re-read .env and the environment"""
        _load_env_file()
        return cls()


config = Config()


def get_config() -> Config:
    return config


def reload_config() -> Config:
    """Replace the module-level config with a freshly read one"""
    global config
    config = Config.reload()
    return config


def _build_handlers(log_config: LoggingConfig) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if log_config.log_file:
        path = Path(log_config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            path,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding="utf-8",
        ))
    if log_config.console_output:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(log_config.log_format)
    for handler in handlers:
        handler.setLevel(log_config.level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "amm_adapter",
) -> logging.Logger:
    """
    (Re)configure the package logger.

    Existing handlers are closed and replaced, so calling this twice does not
    duplicate output.

    Args:
        log_config: Settings to apply (default: config.logging)
        logger_name: Root of the logger tree to configure

    Returns:
        The configured logger
    """
    log_config = log_config or config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    for handler in _build_handlers(log_config):
        logger.addHandler(handler)

    if log_config.log_file:
        logger.info(f"Logging to {log_config.log_file} at {log_config.log_level}")
    return logger


def enable_file_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """Shortcut for setup_logging() with a file handler (LOG_FILE or a timestamped default)"""
    return setup_logging(LoggingConfig(
        log_file=log_file or config.logging.log_file or _default_log_file(),
        log_level=level,
        console_output=console,
    ))
