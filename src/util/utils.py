"""
どこで: `util.utils`
何を: YAML 構成ファイルの読み込み（フェイルソフト）とセクション取得。
なぜ: FPS/シードなどの既定値を、環境変数より上位の「プロジェクト設定」として置けるようにするため。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


def _safe_load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("failed to load config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _find_project_root(start: Path) -> Path:
    """`pyproject.toml` か `configs/` を持つ最も近い祖先を返す（無ければ `start.parent.parent`）。"""
    cur = start.resolve()
    for parent in [cur] + list(cur.parents):
        if (parent / "pyproject.toml").exists() or (parent / "configs").exists():
            return parent
    return cur.parent.parent


def load_config(root: Path | None = None) -> Dict[str, Any]:
    """構成を読み込んで辞書で返す。

    優先順:
    1) `configs/default.yaml`（ベース）
    2) ルートの `config.yaml`（セクション単位で上書き）

    - いずれも存在しない/不正な場合は空辞書。
    - 値が辞書のセクションは 1 段だけマージし、それ以外はトップレベルで上書きする。
    """
    project_root = root if root is not None else _find_project_root(Path(__file__).parent)
    merged: Dict[str, Any] = {}
    for path in (project_root / "configs" / "default.yaml", project_root / "config.yaml"):
        if not path.exists():
            continue
        for key, value in _safe_load_yaml(path).items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
    return merged


def config_section(name: str, root: Path | None = None) -> Dict[str, Any]:
    """`load_config()` の 1 セクションを返す（辞書でなければ空）。"""
    section = load_config(root).get(name, {})
    return section if isinstance(section, dict) else {}


__all__ = ["load_config", "config_section"]
