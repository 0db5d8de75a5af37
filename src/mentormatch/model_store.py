"""Named, versioned matching configurations and their lifecycle."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .errors import ConfigurationError, ModelNotFoundError, ModelStateError
from .models import MatchingFilters, MatchingModel, MatchingWeights, ModelStatus, utcnow

logger = logging.getLogger(__name__)


class MatchingModelStore:
    """In-memory store of :class:`MatchingModel` rows.

    At most one model is the default at any time. Archiving is terminal:
    an archived model must be forked with :meth:`create_new_version` before
    it can be used again.
    """

    def __init__(
        self,
        *,
        default_weights: Optional[MatchingWeights] = None,
        default_filters: Optional[MatchingFilters] = None,
        clock: Callable = utcnow,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._models: Dict[str, MatchingModel] = {}
        self._default_weights = default_weights or MatchingWeights()
        self._default_filters = default_filters or MatchingFilters()
        self._clock = clock
        self._id_factory = id_factory

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        *,
        weights: Optional[Mapping[str, Any]] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> MatchingModel:
        """Create a draft model, starting from the default weights and filters."""

        now = self._clock()
        model = MatchingModel(
            id=self._id_factory(),
            name=name,
            version=1,
            status=ModelStatus.DRAFT,
            description=description,
            weights=_merged(self._default_weights, weights),
            filters=_merged(self._default_filters, filters),
            created_at=now,
            updated_at=now,
        )
        self._models[model.id] = model
        logger.info("Created matching model %s (%s v1)", model.id, name)
        return model.model_copy(deep=True)

    def get(self, model_id: str) -> MatchingModel:
        return self._get(model_id).model_copy(deep=True)

    def list_models(self) -> List[MatchingModel]:
        """All models ordered by name, newest version first."""

        ordered = sorted(self._models.values(), key=lambda m: (m.name, -m.version))
        return [model.model_copy(deep=True) for model in ordered]

    def list_active(self) -> List[MatchingModel]:
        return [model for model in self.list_models() if model.status is ModelStatus.ACTIVE]

    def get_default(self) -> Optional[MatchingModel]:
        for model in self._models.values():
            if model.is_default:
                return model.model_copy(deep=True)
        return None

    def create_new_version(self, model_id: str) -> MatchingModel:
        """Fork weights and filters into a new draft with the next version number."""

        parent = self._get(model_id)
        latest = max(m.version for m in self._models.values() if m.name == parent.name)
        now = self._clock()
        model = MatchingModel(
            id=self._id_factory(),
            name=parent.name,
            version=latest + 1,
            status=ModelStatus.DRAFT,
            is_default=False,
            description=parent.description,
            weights=parent.weights.model_copy(),
            filters=parent.filters.model_copy(),
            created_at=now,
            updated_at=now,
        )
        self._models[model.id] = model
        logger.info("Created %s v%d from %s", parent.name, model.version, parent.id)
        return model.model_copy(deep=True)

    def update(
        self,
        model_id: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        weights: Optional[Mapping[str, Any]] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> MatchingModel:
        """Edit a model in place, merging partial weights and filters."""

        model = self._get(model_id)
        if model.status is ModelStatus.ARCHIVED:
            raise ModelStateError(
                f"Model {model_id} is archived; create a new version to change it"
            )
        changes: Dict[str, Any] = {"updated_at": self._clock()}
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if weights:
            changes["weights"] = _merged(model.weights, weights)
        if filters:
            changes["filters"] = _merged(model.filters, filters)
        updated = MatchingModel.model_validate({**model.model_dump(), **changes})
        self._models[model_id] = updated
        return updated.model_copy(deep=True)

    def activate(self, model_id: str) -> MatchingModel:
        model = self._get(model_id)
        if model.status is ModelStatus.ARCHIVED:
            raise ModelStateError(
                f"Model {model_id} is archived; create a new version before activating"
            )
        return self._replace(model, status=ModelStatus.ACTIVE)

    def set_default(self, model_id: str) -> MatchingModel:
        """Make ``model_id`` the only default model."""

        model = self._get(model_id)
        if model.status is ModelStatus.ARCHIVED:
            raise ModelStateError(
                f"Model {model_id} is archived; create a new version before making it default"
            )
        for other in list(self._models.values()):
            if other.is_default and other.id != model_id:
                self._replace(other, is_default=False)
        logger.info("Default matching model is now %s", model_id)
        return self._replace(model, is_default=True)

    def archive(self, model_id: str) -> MatchingModel:
        """Archive a model. If it was the default, no other model is promoted."""

        model = self._get(model_id)
        if model.is_default:
            logger.warning("Archiving default model %s; no default model remains", model_id)
        return self._replace(model, status=ModelStatus.ARCHIVED, is_default=False)

    def delete(self, model_id: str) -> None:
        model = self._get(model_id)
        if model.status is not ModelStatus.DRAFT:
            raise ModelStateError("Can only delete draft models")
        del self._models[model_id]

    def _get(self, model_id: str) -> MatchingModel:
        try:
            return self._models[model_id]
        except KeyError:
            raise ModelNotFoundError(model_id) from None

    def _replace(self, model: MatchingModel, **changes: Any) -> MatchingModel:
        updated = model.model_copy(update={**changes, "updated_at": self._clock()})
        self._models[model.id] = updated
        return updated.model_copy(deep=True)


def _merged(base, overrides: Optional[Mapping[str, Any]]):
    if not overrides:
        return base.model_copy()
    model_cls = type(base)
    unknown = sorted(set(overrides) - set(model_cls.model_fields))
    if unknown:
        raise ConfigurationError(f"Unknown {model_cls.__name__} field(s): {', '.join(unknown)}")
    try:
        return model_cls.model_validate({**base.model_dump(), **dict(overrides)})
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigurationError(f"Invalid {model_cls.__name__}: {errors}") from exc


__all__ = ["MatchingModelStore"]
