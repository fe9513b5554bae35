from typing import Callable, Dict, Iterable, TYPE_CHECKING

from ..compiler.errors import MissingDefinitionError

if TYPE_CHECKING:
    from ..compiler.instance import InstanceContext

Definition = Callable[["InstanceContext"], None]


class ComponentRegistry:
    """Kind name → component definition."""

    def __init__(self):
        self._definitions: Dict[str, Definition] = {}

    def register(self, kind: str) -> Callable[[Definition], Definition]:
        def decorator(defn: Definition) -> Definition:
            if kind in self._definitions:
                raise ValueError(f"Component kind '{kind}' is already registered.")
            self._definitions[kind] = defn
            return defn
        return decorator

    def get(self, kind: str) -> Definition:
        defn = self._definitions.get(kind)
        if defn is None:
            raise MissingDefinitionError(f"missing definition for '{kind}'")
        return defn

    def validate(self, kinds: Iterable[str]) -> None:
        # Fail before any definition runs, so no instance is half-built.
        for kind in kinds:
            self.get(kind)


# The registry the bundled component library registers into.
registry = ComponentRegistry()
