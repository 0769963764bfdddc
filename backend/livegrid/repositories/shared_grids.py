import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from livegrid.core.errors import ShareIdCollisionError, ShareStoreError
from livegrid.models.shared_grid import SharedGrid

logger = logging.getLogger(__name__)


class SharedGridRepository:
    """Queries against the ``shared_grids`` table.

    The session is injected so callers (routes, tests) decide which
    database it talks to. Database errors surface as ShareStoreError.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_state_hash(self, state_hash: str, share_type: str | None = None) -> list[SharedGrid]:
        """All records with this fingerprint, newest first."""
        try:
            query = self.db.query(SharedGrid).filter(SharedGrid.state_hash == state_hash)
            if share_type is not None:
                query = query.filter(SharedGrid.type == share_type)
            return query.order_by(SharedGrid.created_at.desc(), SharedGrid.id.desc()).all()
        except SQLAlchemyError as e:
            logger.error("Lookup by state hash failed: %s", e)
            raise ShareStoreError(f"Failed to find share by state hash: {e}") from e

    def find_by_share_id(self, share_id: str, share_type: str | None = None) -> SharedGrid | None:
        try:
            query = self.db.query(SharedGrid).filter(SharedGrid.share_id == share_id)
            if share_type is not None:
                query = query.filter(SharedGrid.type == share_type)
            return query.first()
        except SQLAlchemyError as e:
            logger.error("Lookup by share id failed: %s", e)
            raise ShareStoreError(f"Failed to find share by ID: {e}") from e

    def share_id_exists(self, share_id: str) -> bool:
        try:
            row = (
                self.db.query(SharedGrid.id)
                .filter(SharedGrid.share_id == share_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise ShareStoreError(f"Failed to check share ID existence: {e}") from e
        return row is not None

    def create(
        self,
        share_id: str,
        rows: int,
        cols: int,
        cell_data: dict,
        state_hash: str,
        share_type: str,
    ) -> SharedGrid:
        row = SharedGrid(
            share_id=share_id,
            rows=rows,
            cols=cols,
            cell_data=cell_data,
            state_hash=state_hash,
            type=share_type,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ShareIdCollisionError(f"Share ID {share_id} already taken") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Insert into shared_grids failed: %s", e)
            raise ShareStoreError(f"Failed to create share: {e}") from e
        self.db.refresh(row)
        return row

    def count(self) -> int:
        try:
            return self.db.query(func.count(SharedGrid.id)).scalar() or 0
        except SQLAlchemyError as e:
            raise ShareStoreError(f"Failed to get share count: {e}") from e
