"""Phase registries: the static, ordered phase list of each flow variant."""

from dataclasses import dataclass
from typing import ClassVar

from pydantic import BaseModel

from draftflow.domain.errors import ConfigurationError
from draftflow.domain.models.phase import FlowKind, FlowVariant, PhaseDescriptor


@dataclass(frozen=True, slots=True)
class FlowDefinition:
    """Registered description of one (flow kind, variant) pair.

    Attributes:
        phases: Ordered phase descriptors
        seed_model: Model a seed payload must satisfy to enter this variant
        root: True for the variant a kind starts in and falls back to
    """

    phases: tuple[PhaseDescriptor, ...]
    seed_model: type[BaseModel] | None = None
    root: bool = False


def _coerce_kind(value: FlowKind | str) -> FlowKind:
    try:
        return FlowKind(value)
    except ValueError as e:
        available = ", ".join(k.value for k in FlowKind)
        raise ConfigurationError(
            f"Unknown flow kind: '{value}'. Available kinds: {available}"
        ) from e


def _coerce_variant(value: FlowVariant | str) -> FlowVariant:
    try:
        return FlowVariant(value)
    except ValueError as e:
        available = ", ".join(v.value for v in FlowVariant)
        raise ConfigurationError(
            f"Unknown flow variant: '{value}'. Available variants: {available}"
        ) from e


@dataclass(frozen=True, slots=True)
class PhaseRegistry:
    """Immutable ordered phases for one flow variant.

    Usage:
        registry = PhaseRegistry.for_variant("intake", "default")
        registry.first.id  # "basic"
    """

    flow_kind: FlowKind
    flow_variant: FlowVariant
    phases: tuple[PhaseDescriptor, ...]
    seed_model: type[BaseModel] | None = None

    _catalog: ClassVar[dict[tuple[FlowKind, FlowVariant], FlowDefinition]] = {}
    _builtins_loaded: ClassVar[bool] = False

    # ========================================================================
    # Catalog
    # ========================================================================

    @classmethod
    def register(
        cls,
        flow_kind: FlowKind,
        flow_variant: FlowVariant,
        definition: FlowDefinition,
    ) -> None:
        """Register (or replace) the definition of a flow variant."""
        if not definition.phases:
            raise ConfigurationError(
                f"Flow '{flow_kind.value}/{flow_variant.value}' must define at least one phase"
            )
        ids = [p.id for p in definition.phases]
        if len(set(ids)) != len(ids):
            raise ConfigurationError(
                f"Flow '{flow_kind.value}/{flow_variant.value}' has duplicate phase ids: {ids}"
            )
        cls._catalog[(flow_kind, flow_variant)] = definition

    @classmethod
    def _ensure_builtins(cls) -> None:
        if cls._builtins_loaded:
            return
        cls._builtins_loaded = True
        from draftflow.flows import register_builtin_flows

        register_builtin_flows()

    @classmethod
    def for_variant(
        cls,
        flow_kind: FlowKind | str,
        flow_variant: FlowVariant | str | None = None,
    ) -> "PhaseRegistry":
        """Build the registry for a flow variant.

        Args:
            flow_kind: Workflow kind
            flow_variant: Variant within the kind (default: the kind's root variant)

        Returns:
            Immutable PhaseRegistry

        Raises:
            ConfigurationError: If the kind or variant is unknown
        """
        cls._ensure_builtins()
        kind = _coerce_kind(flow_kind)
        variant = cls.root_variant(kind) if flow_variant is None else _coerce_variant(flow_variant)

        definition = cls._catalog.get((kind, variant))
        if definition is None:
            available = ", ".join(v.value for v in cls.variants(kind))
            raise ConfigurationError(
                f"Flow '{kind.value}' has no variant '{variant.value}'. "
                f"Available variants: {available}"
            )
        return cls(
            flow_kind=kind,
            flow_variant=variant,
            phases=definition.phases,
            seed_model=definition.seed_model,
        )

    @classmethod
    def variants(cls, flow_kind: FlowKind | str) -> list[FlowVariant]:
        cls._ensure_builtins()
        kind = _coerce_kind(flow_kind)
        return [v for (k, v) in cls._catalog if k == kind]

    @classmethod
    def root_variant(cls, flow_kind: FlowKind | str) -> FlowVariant:
        """Variant a kind starts in when none is requested."""
        cls._ensure_builtins()
        kind = _coerce_kind(flow_kind)
        for (k, v), definition in cls._catalog.items():
            if k == kind and definition.root:
                return v
        if (kind, FlowVariant.DEFAULT) in cls._catalog:
            return FlowVariant.DEFAULT
        raise ConfigurationError(f"Flow '{kind.value}' has no registered variants")

    # ========================================================================
    # Lookup
    # ========================================================================

    @property
    def phase_ids(self) -> list[str]:
        return [p.id for p in self.phases]

    @property
    def first(self) -> PhaseDescriptor:
        return self.phases[0]

    @property
    def last(self) -> PhaseDescriptor:
        return self.phases[-1]

    def contains(self, phase_id: str) -> bool:
        return any(p.id == phase_id for p in self.phases)

    def get(self, phase_id: str) -> PhaseDescriptor:
        """Descriptor for `phase_id`.

        Raises:
            ConfigurationError: If the phase is not part of this registry
        """
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        raise ConfigurationError(
            f"Phase '{phase_id}' is not part of flow "
            f"'{self.flow_kind.value}/{self.flow_variant.value}'"
        )

    def index_of(self, phase_id: str) -> int:
        return self.phase_ids.index(self.get(phase_id).id)


def phases_for(
    flow_kind: FlowKind | str,
    flow_variant: FlowVariant | str | None = None,
) -> tuple[PhaseDescriptor, ...]:
    """Ordered phase descriptors for a flow variant."""
    return PhaseRegistry.for_variant(flow_kind, flow_variant).phases
