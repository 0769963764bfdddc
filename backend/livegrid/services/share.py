"""Shareable links for grid and multi-track configurations.

A configuration is fingerprinted from its semantic content (rows, cols and
cell URLs). Saving the same configuration twice returns the link created
the first time instead of inserting a new record.
"""

import hashlib
import json
import logging
import secrets

from livegrid.core.config import settings
from livegrid.core.constants import (
    SHARE_ID_ALPHABET,
    SHARE_TYPE_GRID,
    SHARE_TYPE_MULTI_TRACK,
    STATE_HASH_HEX_CHARS,
)
from livegrid.core.errors import ShareIdCollisionError, ShareIdExhaustedError, ShareNotFoundError
from livegrid.models.shared_grid import SharedGrid
from livegrid.repositories.shared_grids import SharedGridRepository
from livegrid.schemas.share import CellData, GridState, ShareResult, SharedMultiTrack

logger = logging.getLogger(__name__)


def generate_share_id(length: int | None = None) -> str:
    length = length or settings.share_id_length
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(length))


def _cell_url(cell) -> str:
    if isinstance(cell, CellData):
        return cell.url
    if isinstance(cell, dict):
        return cell.get("url") or ""
    return str(cell or "")


def normalize_state(rows: int, cols: int, cell_data: dict) -> dict:
    """Content that identifies a configuration: no UI flags, keys sorted."""
    return {
        "rows": int(rows),
        "cols": int(cols),
        "cells": {key: _cell_url(cell_data[key]) for key in sorted(cell_data)},
    }


def generate_state_hash(rows: int, cols: int, cell_data: dict) -> str:
    """Stable fingerprint of a configuration (truncated SHA-256 hex)."""
    canonical = json.dumps(
        normalize_state(rows, cols, cell_data), sort_keys=True, separators=(",", ":")
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:STATE_HASH_HEX_CHARS]


def multi_track_cells(urls: list[str]) -> dict[str, CellData]:
    """Multi-track URLs stored as a one-column grid: "{index}-0"."""
    return {f"{i}-0": CellData(url=url, is_editing=False) for i, url in enumerate(urls)}


def _row_index(key: str) -> int:
    try:
        return int(key.split("-")[0])
    except ValueError:
        return 0


class ShareService:
    def __init__(self, repository: SharedGridRepository, base_url: str = ""):
        self.repository = repository
        self.base_url = (base_url or "").rstrip("/")

    # --------- helpers --------- #

    def _share_url(self, share_id: str, share_type: str) -> str:
        if share_type == SHARE_TYPE_MULTI_TRACK:
            return f"{self.base_url}/multi-track/share/{share_id}"
        return f"{self.base_url}/share/{share_id}"

    def _find_existing(self, rows: int, cols: int, cell_data: dict, share_type: str) -> SharedGrid | None:
        """Record with the same fingerprint AND the same normalized content."""
        state_hash = generate_state_hash(rows, cols, cell_data)
        wanted = normalize_state(rows, cols, cell_data)
        for record in self.repository.find_by_state_hash(state_hash, share_type):
            if normalize_state(record.rows, record.cols, record.cell_data) == wanted:
                return record
            logger.warning("State hash collision on %s (share %s)", state_hash, record.share_id)
        return None

    def _find_or_create(self, rows: int, cols: int, cells: dict[str, CellData], share_type: str) -> ShareResult:
        existing = self._find_existing(rows, cols, cells, share_type)
        if existing is not None:
            return ShareResult(
                success=True,
                share_url=self._share_url(existing.share_id, share_type),
                share_id=existing.share_id,
                is_existing=True,
            )

        state_hash = generate_state_hash(rows, cols, cells)
        cell_json = {k: v.model_dump() for k, v in cells.items()}
        # One budget covers both a taken id and an insert-time unique violation
        for _ in range(settings.share_id_max_attempts):
            share_id = generate_share_id()
            if self.repository.share_id_exists(share_id):
                continue
            try:
                record = self.repository.create(
                    share_id=share_id,
                    rows=rows,
                    cols=cols,
                    cell_data=cell_json,
                    state_hash=state_hash,
                    share_type=share_type,
                )
            except ShareIdCollisionError:
                logger.info("Share id %s collided on insert, retrying", share_id)
                continue
            logger.info("Created %s share %s", share_type, record.share_id)
            return ShareResult(
                success=True,
                share_url=self._share_url(record.share_id, share_type),
                share_id=record.share_id,
                is_existing=False,
            )
        raise ShareIdExhaustedError("Failed to generate unique share ID after maximum attempts")

    # --------- grid --------- #

    def find_or_create_share(self, grid_state: GridState) -> ShareResult:
        return self._find_or_create(
            grid_state.rows, grid_state.cols, grid_state.cell_data, SHARE_TYPE_GRID
        )

    def has_existing_share(self, grid_state: GridState) -> ShareResult | None:
        existing = self._find_existing(
            grid_state.rows, grid_state.cols, grid_state.cell_data, SHARE_TYPE_GRID
        )
        if existing is None:
            return None
        return ShareResult(
            success=True,
            share_url=self._share_url(existing.share_id, SHARE_TYPE_GRID),
            share_id=existing.share_id,
            is_existing=True,
        )

    def get_shared_grid(self, share_id: str) -> SharedGrid:
        record = self.repository.find_by_share_id(share_id, SHARE_TYPE_GRID)
        if record is None:
            raise ShareNotFoundError("Shared grid not found")
        return record

    # --------- multi-track --------- #

    def find_or_create_multi_track_share(self, urls: list[str]) -> ShareResult:
        cells = multi_track_cells(urls)
        return self._find_or_create(len(urls), 1, cells, SHARE_TYPE_MULTI_TRACK)

    def get_shared_multi_track(self, share_id: str) -> SharedMultiTrack:
        record = self.repository.find_by_share_id(share_id, SHARE_TYPE_MULTI_TRACK)
        if record is None:
            raise ShareNotFoundError("Multi-track share not found")
        urls = [
            _cell_url(record.cell_data[key])
            for key in sorted(record.cell_data, key=_row_index)
        ]
        return SharedMultiTrack(urls=[u for u in urls if u])
