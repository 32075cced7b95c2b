"""テキスト処理ユーティリティ"""

import re
from typing import Optional

from bs4 import BeautifulSoup

# 住所の区切りとして扱う記号
ADDRESS_PUNCTUATION = (",", ".", ";")


def normalize_text(text: Optional[str]) -> Optional[str]:
    """
    テキストを正規化

    - 前後の空白を除去
    - 連続する空白を1つに
    - 全角スペースを半角スペースに変換
    """
    if not text:
        return None

    text = text.replace("　", " ")
    text = re.sub(r"\s+", " ", text)
    text = text.strip()

    return text if text else None


def normalize_address(address: str) -> str:
    """
    住所を照合用キーに正規化

    小文字化、空白の圧縮、``,.;`` の除去を行う。
    "Main Office" と " main  office. " は同じキーになる。
    """
    normalized = normalize_text(address.lower()) or ""
    for mark in ADDRESS_PUNCTUATION:
        normalized = normalized.replace(mark, "")
    return normalized


def split_address_words(address: str) -> list[str]:
    """住所を空白・カンマで単語に分割（小文字化、空要素は除外）"""
    return [word for word in re.split(r"[\s,]+", address.lower()) if word]


def remove_html_tags(text: Optional[str]) -> str:
    """HTMLタグを除去（ルート案内文など）"""
    if not text:
        return ""

    clean = BeautifulSoup(text, "html.parser").get_text(separator=" ")
    return normalize_text(clean) or ""
