"""既知住所の座標定義の読み込み"""
from pathlib import Path
from typing import Any, Optional

import yaml

from ...features.geocoding.domain.models import Coordinate
from ...features.geocoding.providers.local_coordinate_cache import LOCAL_CACHE_SOURCE
from ...shared.exceptions.errors import ConfigurationError, InvalidCoordinateError
from ...shared.logging.config import get_logger

logger = get_logger(__name__)


def load_local_coordinates(
    entries: Optional[dict[str, dict[str, Any]]] = None,
    file_path: Optional[str] = None,
) -> dict[str, Coordinate]:
    """
    既知住所の座標を読み込む

    形式: ``住所: {lat: float, lon: float, formatted: str}``。
    ファイルと設定の両方にある住所は設定側が優先される。

    Args:
        entries: 設定（環境変数）から渡された定義
        file_path: YAMLファイルのパス

    Returns:
        dict[str, Coordinate]: 住所 -> 精度1.0の座標

    Raises:
        ConfigurationError: ファイルが読めない、または定義が不正な場合
    """
    raw: dict[str, dict[str, Any]] = {}

    if file_path:
        raw.update(_read_yaml(Path(file_path)))

    if entries:
        raw.update(entries)

    coordinates: dict[str, Coordinate] = {}
    for address, data in raw.items():
        try:
            coordinates[address] = Coordinate.from_dict(
                {
                    **data,
                    "formatted_address": data.get("formatted") or data.get("formatted_address") or address,
                    "accuracy": 1.0,
                    "source": LOCAL_CACHE_SOURCE,
                }
            )
        except (InvalidCoordinateError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid local coordinate for '{address}': {e}") from e

    if coordinates:
        logger.info(f"Loaded {len(coordinates)} local coordinates")

    return coordinates


def _read_yaml(path: Path) -> dict[str, dict[str, Any]]:
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read local coordinates file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Local coordinates file must contain a mapping: {path}")

    return data
