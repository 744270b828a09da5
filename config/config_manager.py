"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Secrets loading (secrets.yaml - gitignored)
- WATCH_SYMBOLS / BINARY_EXPIRY_SECONDS environment overrides
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, Mapping, Optional
import os
import yaml
import logging

from .models import (
    AppConfig,
    InstrumentConfig,
    SignalConfig,
    BarStoreConfig,
    ScoringWeights,
    PatternConfig,
    ScoringConfig,
    HistoryConfig,
    BroadcastConfig,
    FeedConfig,
    LoggingConfig,
)


logger = logging.getLogger(__name__)

DEFAULT_WATCH_LIST = ["BTCUSDT", "EURUSD", "USDJPY"]
DEFAULT_CATEGORY_PRECISION = {"crypto": 0, "forex": 4, "otc": 4}
CONFIDENCE_FLOOR = 10
CONFIDENCE_CEILING = 99


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. secrets.yaml (if exists, gitignored)
    4. Environment variable overrides

    Later sources override earlier ones. Invalid values raise ValueError
    from load() so misconfiguration is fatal before any processing starts.
    """

    def __init__(
        self,
        config_dir: str | Path = "config",
        env: str = "dev",
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
            environ: Environment mapping (defaults to os.environ).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.environ = os.environ if environ is None else environ
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            FileNotFoundError: If base config not found.
            ValueError: If config is invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise FileNotFoundError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            env_config = self._load_yaml(env_path)
            self.config = self._merge_dicts(self.config, env_config)
            logger.info(f"Loaded {self.env} config from {env_path}")

        secrets_path = self.config_dir / "secrets.yaml"
        if secrets_path.exists():
            secrets = self._load_yaml(secrets_path)
            self.config = self._merge_dicts(self.config, secrets)
            logger.info("Loaded secrets")

        self._apply_env_overrides()

        return self.parse(self.config)

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        """Apply WATCH_SYMBOLS and BINARY_EXPIRY_SECONDS from the environment."""
        watch = self.environ.get("WATCH_SYMBOLS")
        if watch:
            self.config.setdefault("signals", {})["watch_list"] = watch.split(",")
            logger.info("WATCH_SYMBOLS override applied")

        expiry = self.environ.get("BINARY_EXPIRY_SECONDS")
        if expiry:
            self.config.setdefault("scoring", {})["expiry_sec"] = expiry
            logger.info("BINARY_EXPIRY_SECONDS override applied")

    @classmethod
    def parse(cls, raw: Dict[str, Any]) -> AppConfig:
        """Parse raw dict into AppConfig."""
        try:
            signals_raw = raw.get("signals", {})
            watch_list = [
                str(s).strip().upper()
                for s in signals_raw.get("watch_list", DEFAULT_WATCH_LIST)
                if str(s).strip()
            ]
            if not watch_list:
                raise ValueError("signals.watch_list must not be empty")
            signals = SignalConfig(
                watch_list=watch_list,
                emit_interval_sec=_positive_float(signals_raw, "emit_interval_sec", 5.0),
                market=str(signals_raw.get("market", "binary")),
            )

            store_raw = raw.get("bar_store", {})
            bar_store = BarStoreConfig(
                retention=_positive_int(store_raw, "retention", 3600),
                base_stride=_positive_int(store_raw, "base_stride", 1),
            )

            scoring = cls._parse_scoring(raw.get("scoring", {}))

            history_raw = raw.get("history", {})
            history = HistoryConfig(capacity=_positive_int(history_raw, "capacity", 500))

            broadcast_raw = raw.get("broadcast", {})
            broadcast = BroadcastConfig(
                subscriber_queue_size=_positive_int(broadcast_raw, "subscriber_queue_size", 100),
            )

            feed_raw = raw.get("feed", {})
            feed = FeedConfig(
                enabled=bool(feed_raw.get("enabled", False)),
                tick_interval_sec=_positive_float(feed_raw, "tick_interval_sec", 1.0),
                seed=_optional_int(feed_raw, "seed"),
            )

            logging_raw = raw.get("logging", {})
            logging_config = LoggingConfig(
                level=str(logging_raw.get("level", "INFO")).upper(),
                dir=logging_raw.get("dir", "./logs"),
                console=bool(logging_raw.get("console", False)),
            )

            category_precision = dict(DEFAULT_CATEGORY_PRECISION)
            for category, precision in (raw.get("categories") or {}).items():
                precision = _as_int(precision, f"categories.{category}")
                if precision < 0:
                    raise ValueError(f"categories.{category}: must not be negative, got {precision}")
                category_precision[str(category)] = precision

            instruments: Dict[str, InstrumentConfig] = {}
            for symbol, meta in (raw.get("instruments") or {}).items():
                meta = meta or {}
                symbol = str(symbol).upper()
                category = str(meta.get("category", "otc"))
                if category not in category_precision:
                    raise ValueError(f"instruments.{symbol}: unknown category '{category}'")
                instruments[symbol] = InstrumentConfig(
                    symbol=symbol,
                    category=category,
                    precision=category_precision[category],
                    base_price=_positive_float(meta, "base_price", 1.0, prefix=f"instruments.{symbol}"),
                    noise=_non_negative_float(meta, "noise", 0.0012, prefix=f"instruments.{symbol}"),
                    max_size=_non_negative_float(meta, "max_size", 100.0, prefix=f"instruments.{symbol}"),
                )

            return AppConfig(
                signals=signals,
                bar_store=bar_store,
                scoring=scoring,
                history=history,
                broadcast=broadcast,
                feed=feed,
                logging=logging_config,
                instruments=instruments,
                category_precision=category_precision,
                raw=raw,
            )

        except (TypeError, AttributeError, KeyError) as e:
            raise ValueError(f"Failed to parse config: {e}") from e

    @staticmethod
    def _parse_scoring(scoring_raw: Dict[str, Any]) -> ScoringConfig:
        p = "scoring"
        weights_raw = scoring_raw.get("weights", {})
        defaults = ScoringWeights()
        weights = ScoringWeights(
            **{
                name: _as_float(weights_raw.get(name, getattr(defaults, name)), f"{p}.weights.{name}")
                for name in vars(defaults)
            }
        )

        patterns = {}
        for name, pattern_raw in (scoring_raw.get("patterns") or {}).items():
            pattern_raw = pattern_raw or {}
            patterns[str(name)] = PatternConfig(
                enabled=bool(pattern_raw.get("enabled", False)),
                weight=_as_float(pattern_raw.get("weight", 0.0), f"{p}.patterns.{name}.weight"),
            )

        config = ScoringConfig(
            min_bars=_positive_int(scoring_raw, "min_bars", 30, prefix=p),
            fast_stride=_positive_int(scoring_raw, "fast_stride", 60, prefix=p),
            slow_stride=_positive_int(scoring_raw, "slow_stride", 300, prefix=p),
            lookback_bars=_positive_int(scoring_raw, "lookback_bars", 80, prefix=p),
            short_period=_positive_int(scoring_raw, "short_period", 5, prefix=p),
            long_period=_positive_int(scoring_raw, "long_period", 20, prefix=p),
            rsi_period=_positive_int(scoring_raw, "rsi_period", 14, prefix=p),
            rsi_oversold=_non_negative_float(scoring_raw, "rsi_oversold", 35.0, prefix=p),
            rsi_overbought=_non_negative_float(scoring_raw, "rsi_overbought", 65.0, prefix=p),
            volume_window=_positive_int(scoring_raw, "volume_window", 60, prefix=p),
            volume_multiplier=_positive_float(scoring_raw, "volume_multiplier", 2.2, prefix=p),
            round_tolerance_pct=_non_negative_float(scoring_raw, "round_tolerance_pct", 0.0005, prefix=p),
            entry_band_pct=_non_negative_float(scoring_raw, "entry_band_pct", 0.001, prefix=p),
            call_threshold=_positive_int(scoring_raw, "call_threshold", 60, prefix=p),
            put_threshold=_positive_int(scoring_raw, "put_threshold", 40, prefix=p),
            min_confidence=_positive_int(scoring_raw, "min_confidence", 10, prefix=p),
            max_confidence=_positive_int(scoring_raw, "max_confidence", 99, prefix=p),
            base_score=_non_negative_float(scoring_raw, "base_score", 50.0, prefix=p),
            expiry_sec=_positive_int(scoring_raw, "expiry_sec", 60, prefix=p),
            boost_probability=_non_negative_float(scoring_raw, "boost_probability", 0.8, prefix=p),
            boost_seed=_optional_int(scoring_raw, "boost_seed"),
            weights=weights,
            patterns=patterns,
        )

        if config.put_threshold >= config.call_threshold:
            raise ValueError("scoring.put_threshold must be below scoring.call_threshold")
        if not CONFIDENCE_FLOOR <= config.min_confidence <= config.max_confidence <= CONFIDENCE_CEILING:
            raise ValueError(
                f"scoring: need {CONFIDENCE_FLOOR} <= min_confidence <= max_confidence <= {CONFIDENCE_CEILING}, "
                f"got {config.min_confidence}..{config.max_confidence}"
            )
        if config.boost_probability > 1.0:
            raise ValueError("scoring.boost_probability must be within [0, 1]")
        if config.short_period >= config.long_period:
            raise ValueError("scoring.short_period must be below scoring.long_period")
        return config


# =============================================================================
# Value coercion
# =============================================================================

def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key}: expected a number, got {value!r}") from None


def _as_int(value: Any, key: str) -> int:
    number = _as_float(value, key)
    if not number.is_integer():
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    return int(number)


def _key(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _positive_float(raw: Dict[str, Any], name: str, default: float, prefix: str = "") -> float:
    value = _as_float(raw.get(name, default), _key(prefix, name))
    if value <= 0:
        raise ValueError(f"{_key(prefix, name)}: must be positive, got {value}")
    return value


def _non_negative_float(raw: Dict[str, Any], name: str, default: float, prefix: str = "") -> float:
    value = _as_float(raw.get(name, default), _key(prefix, name))
    if value < 0:
        raise ValueError(f"{_key(prefix, name)}: must not be negative, got {value}")
    return value


def _positive_int(raw: Dict[str, Any], name: str, default: int, prefix: str = "") -> int:
    value = _as_int(raw.get(name, default), _key(prefix, name))
    if value <= 0:
        raise ValueError(f"{_key(prefix, name)}: must be positive, got {value}")
    return value


def _optional_int(raw: Dict[str, Any], name: str) -> Optional[int]:
    value = raw.get(name)
    if value is None:
        return None
    return _as_int(value, name)
