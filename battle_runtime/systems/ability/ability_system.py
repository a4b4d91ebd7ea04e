"""Character module loader with hot reload."""

from __future__ import annotations

import hashlib
from importlib.machinery import SourceFileLoader
from importlib.util import module_from_spec, spec_from_loader
from pathlib import Path
import inspect
from types import ModuleType
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence
import logging

from ...abilities.base import CharacterModule
from ...abilities.descriptor import CharacterDefinition, load_definitions
from ...config import CONFIG, CONFIG_PATH, Config

if TYPE_CHECKING:
    from ...core.actor import Actor

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parents[2]


def characters_dir(config: Config | None = None, base: Path | None = None) -> Path:
    """Definitions directory from ``paths.characters``, else the bundled one.

    Relative paths resolve against ``base`` (the config file's directory).
    """

    config = config or CONFIG
    bundled = PACKAGE_DIR / "data" / "characters"
    configured = (config.paths or {}).get("characters")
    if not configured:
        return bundled
    path = Path(configured)
    if not path.is_absolute():
        path = (base or CONFIG_PATH.parent) / path
    return path if path.is_dir() else bundled


class AbilitySystem:
    """Load, hot-reload and resolve per-character ability modules."""

    def __init__(
        self,
        search_dirs: Sequence[Path] | None = None,
        definitions: Mapping[str, CharacterDefinition] | None = None,
    ) -> None:
        self.search_dirs: List[Path] = (
            list(search_dirs)
            if search_dirs is not None
            else [PACKAGE_DIR / "abilities" / "characters"]
        )
        self.definitions: Dict[str, CharacterDefinition] = (
            dict(definitions) if definitions is not None else load_definitions(characters_dir())
        )
        logger.info("AbilitySystem searching for character modules in: %s", self.search_dirs)

        self._modules: Dict[Path, ModuleType] = {}
        self._mtimes: Dict[Path, float] = {}
        self._hashes: Dict[Path, str] = {}
        self.characters: Dict[str, CharacterModule] = {}
        self._origins: Dict[str, Path] = {}

        self._load_all()

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _module_name(path: Path) -> str:
        """Return a unique module name for ``path``."""
        stem = "".join(c if c.isalnum() else "_" for c in path.with_suffix("").name)
        digest = hashlib.md5(str(path.parent).encode("utf-8")).hexdigest()[:8]
        return f"battle_character_module_{digest}_{stem}"

    def _unregister(self, path: Path) -> None:
        for name, origin in list(self._origins.items()):
            if origin == path:
                logger.info("Unregistering character module '%s' from %s", name, path)
                self.characters.pop(name, None)
                del self._origins[name]

    def _load_module(self, path: Path) -> None:
        try:
            data = path.read_bytes()
            digest = hashlib.md5(data).hexdigest()
            mtime = path.stat().st_mtime

            needs_load = (
                path not in self._mtimes
                or self._mtimes[path] != mtime
                or self._hashes[path] != digest
            )
            if not needs_load:
                return

            module_name = self._module_name(path)
            self._unregister(path)

            logger.info("Loading character module from: %s as %s", path, module_name)
            loader = SourceFileLoader(module_name, str(path))
            spec = spec_from_loader(loader.name, loader)
            if spec is None:
                logger.error("Could not create spec for module %s", path)
                return

            module = module_from_spec(spec)
            loader.exec_module(module)

            self._modules[path] = module
            self._mtimes[path] = mtime
            self._hashes[path] = digest
            self._register_module(module, path)
        except FileNotFoundError:
            logger.warning("Character module %s not found during load (possibly deleted).", path)
            self._forget(path)
        except Exception as exc:
            logger.error("Error loading character module %s: %s", path, exc, exc_info=True)

    def _register_module(self, module: ModuleType, module_path: Path) -> None:
        found_any = False
        for obj in list(module.__dict__.values()):
            if not (inspect.isclass(obj) and issubclass(obj, CharacterModule)):
                continue
            if obj.__module__ != module.__name__ or inspect.isabstract(obj) or not obj.character:
                continue
            definition = self.definitions.get(obj.character)
            if definition is None:
                logger.warning(
                    "No ability definitions for character '%s' (module %s); skipping.",
                    obj.character,
                    module_path,
                )
                continue
            try:
                instance = obj(definition)
            except Exception as exc:
                logger.error("Error instantiating %s from %s: %s", obj.__name__, module_path, exc, exc_info=True)
                continue
            if obj.character in self.characters:
                logger.warning("Character '%s' from %s overrides an existing module.", obj.character, module_path)
            self.characters[obj.character] = instance
            self._origins[obj.character] = module_path
            logger.info("Registered character module '%s' from %s", obj.character, module_path)
            found_any = True
        if not found_any:
            logger.debug("No character modules found in %s", module_path)

    def _forget(self, path: Path) -> None:
        self._unregister(path)
        self._modules.pop(path, None)
        self._mtimes.pop(path, None)
        self._hashes.pop(path, None)

    def _load_all(self) -> None:
        """Scan search directories and load/reload character modules."""
        current_paths = set()
        for dir_path in self.search_dirs:
            if not dir_path.exists():
                continue
            for path in sorted(dir_path.glob("*.py")):
                if path.name == "__init__.py":
                    continue
                current_paths.add(path)
                self._load_module(path)

        for path in set(self._modules) - current_paths:
            logger.info("Character module %s seems to be deleted. Unloading.", path)
            self._forget(path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def reload(self) -> None:
        """Pick up new, changed or deleted module files."""
        self._load_all()

    def module_for(self, actor: "Actor") -> Optional[CharacterModule]:
        return self.characters.get(actor.character)

    def definition_for(self, character: str) -> Optional[CharacterDefinition]:
        return self.definitions.get(character)


__all__ = ["AbilitySystem", "characters_dir"]
