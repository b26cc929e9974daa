"""Application layer - Module graph construction and provider visibility."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from plugkit.application.resolver import ProviderResolver
from plugkit.domain import (
    CompositionPolicy,
    DynamicModule,
    EnhancerBinding,
    GlobalEnhancers,
    GraphErrorKind,
    ModuleNode,
    ModuleResolutionError,
    ProviderBinding,
    ProviderDefinition,
    Token,
    UnresolvableDependencyError,
    token_name,
)

logger = logging.getLogger(__name__)


class ResolvedModule(BaseModel):
    """A module of the built graph.

    Attributes:
        key: Unique key of the module in the graph.
        node: The module declaration.
        imports: Keys of the directly imported modules.
        providers: Bindings declared by the module itself.
        exports: Bindings the module exposes to importers.
        visible: Every binding the module's providers can inject.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: str
    node: ModuleNode
    imports: List[str] = Field(default_factory=list)
    providers: Dict[Token, ProviderBinding] = Field(default_factory=dict)
    exports: Dict[Token, ProviderBinding] = Field(default_factory=dict)
    visible: Dict[Token, ProviderBinding] = Field(default_factory=dict)


class ResolvedGraph:
    """Result of a successful graph build.

    Attributes:
        root_key: Key of the root module.
        modules: Modules by key, in discovery order.
        enhancers: Plugin-global enhancers, composed across modules.
    """

    def __init__(self, root_key: str, modules: Dict[str, ResolvedModule], enhancers: GlobalEnhancers) -> None:
        self.root_key = root_key
        self.modules = modules
        self.enhancers = enhancers

    def lookup(self, module_key: str, token: Token) -> Optional[ProviderBinding]:
        """Binding visible for a token from a module, if any."""
        module = self.modules.get(module_key)
        if module is None:
            return None
        return module.visible.get(token)

    def controllers(self) -> List[Tuple[type, str]]:
        """Controller classes with the key of their declaring module."""
        return [(controller, key) for key, module in self.modules.items() for controller in module.node.controllers]

    def override_provider(self, token: Token, definition: ProviderDefinition) -> int:
        """Replace the definition behind a token everywhere it is visible.

        The owning module of each replaced binding is kept. Intended for tests,
        before a container is created from the graph.

        Returns:
            Number of modules whose visibility changed.
        """
        replaced: Dict[Tuple[str, Token], ProviderBinding] = {}
        changed = 0
        for module in self.modules.values():
            touched = False
            for table in (module.providers, module.exports, module.visible):
                binding = table.get(token)
                if binding is None:
                    continue
                if binding.cache_key not in replaced:
                    replaced[binding.cache_key] = ProviderBinding(definition=definition, owner=binding.owner)
                table[token] = replaced[binding.cache_key]
                touched = True
            changed += int(touched)
        return changed


class _BuildState:
    def __init__(self) -> None:
        self.keys_by_ref: Dict[int, str] = {}
        self.visiting: List[Tuple[int, str]] = []
        self.nodes: Dict[str, ModuleNode] = {}
        self.imports: Dict[str, List[str]] = {}
        self.ref_keys: Dict[str, Dict[int, str]] = {}
        self.discovery: List[str] = []
        self.post_order: List[str] = []
        self.dynamic_nodes: Dict[int, ModuleNode] = {}
        self.name_counts: Dict[str, int] = {}
        # keep refs alive so id() keys stay unique for the whole build
        self.refs: List[Any] = []


class ModuleGraphBuilder:
    """Builds the module graph from a root module.

    Traverses imports depth-first, materializing dynamic modules on the way,
    detecting import cycles and deduplicating modules imported from several
    places. Then computes, for each module, the bindings visible to it and
    checks that every provider dependency is satisfiable. Nothing is returned
    unless the whole graph is valid.

    Attributes:
        _resolver: Used to read provider dependencies.
        _composition: How global enhancers from several modules combine.
    """

    def __init__(
        self,
        resolver: Optional[ProviderResolver] = None,
        composition: CompositionPolicy = CompositionPolicy.CONCATENATE,
    ) -> None:
        self._resolver = resolver or ProviderResolver()
        self._composition = composition

    def build(self, root: Any, core_modules: Sequence[ModuleNode] = ()) -> ResolvedGraph:
        """Build and validate the graph.

        Args:
            root: Root module (static or dynamic).
            core_modules: Global modules visited before the root, providing
                runtime services such as the plugin settings.

        Returns:
            The resolved graph.

        Raises:
            ModuleResolutionError: If the graph has a cycle, a duplicate provider,
                an invalid export or an unsatisfiable dependency.
        """
        state = _BuildState()
        for core in core_modules:
            self._visit(core, state)
        root_key = self._visit(root, state)

        modules: Dict[str, ResolvedModule] = {}
        for key in state.post_order:
            node = state.nodes[key]
            providers = self._collect_providers(key, node)
            module = ResolvedModule(key=key, node=node, imports=state.imports[key], providers=providers)
            module.exports = self._collect_exports(module, modules, state.ref_keys[key])
            modules[key] = module

        global_exports: Dict[Token, ProviderBinding] = {}
        for key in state.discovery:
            if modules[key].node.is_global:
                for token, binding in modules[key].exports.items():
                    global_exports.setdefault(token, binding)

        for key in state.post_order:
            module = modules[key]
            visible = dict(global_exports)
            for imported_key in module.imports:
                visible.update(modules[imported_key].exports)
            visible.update(module.providers)
            module.visible = visible

        for key in state.post_order:
            self._validate_dependencies(modules[key])

        ordered = {key: modules[key] for key in state.discovery}
        enhancers = self._collect_enhancers(ordered)
        logger.info(
            "Module graph built: %d modules, %d providers, %d controllers",
            len(ordered),
            sum(len(module.providers) for module in ordered.values()),
            sum(len(module.node.controllers) for module in ordered.values()),
        )
        return ResolvedGraph(root_key=root_key, modules=ordered, enhancers=enhancers)

    def _materialize(self, ref: Any, state: _BuildState, parent: Optional[str]) -> Tuple[int, ModuleNode]:
        ref_id = id(ref)
        if isinstance(ref, ModuleNode):
            return ref_id, ref
        if isinstance(ref, DynamicModule):
            if ref_id not in state.dynamic_nodes:
                node = ref.register()
                if not isinstance(node, ModuleNode):
                    raise ModuleResolutionError(
                        GraphErrorKind.INVALID_MODULE,
                        f"{type(ref).__name__}.register() did not return a ModuleNode",
                        module=parent,
                    )
                logger.debug("Registered dynamic module %s", node.name)
                state.dynamic_nodes[ref_id] = node
            return ref_id, state.dynamic_nodes[ref_id]
        raise ModuleResolutionError(
            GraphErrorKind.INVALID_MODULE,
            f"Import {ref!r} is neither a ModuleNode nor a DynamicModule",
            module=parent,
        )

    def _visit(self, ref: Any, state: _BuildState, parent: Optional[str] = None) -> str:
        ref_id, node = self._materialize(ref, state, parent)
        state.refs.append(ref)

        visiting_ids = [visiting_id for visiting_id, _ in state.visiting]
        if ref_id in visiting_ids:
            start = visiting_ids.index(ref_id)
            path = [name for _, name in state.visiting[start:]] + [node.name]
            raise ModuleResolutionError(
                GraphErrorKind.CIRCULAR_DEPENDENCY,
                f"Circular module import: {' -> '.join(path)}",
                path=path,
                module=node.name,
            )
        if ref_id in state.keys_by_ref:
            return state.keys_by_ref[ref_id]

        key = self._assign_key(node.name, state)
        state.visiting.append((ref_id, node.name))
        state.nodes[key] = node
        state.discovery.append(key)
        logger.debug("Discovered module %s", key)

        import_keys: List[str] = []
        ref_keys: Dict[int, str] = {}
        for imported in node.imports:
            imported_key = self._visit(imported, state, parent=key)
            if imported_key not in import_keys:
                import_keys.append(imported_key)
            ref_keys[id(imported)] = imported_key

        state.visiting.pop()
        state.keys_by_ref[ref_id] = key
        state.imports[key] = import_keys
        state.ref_keys[key] = ref_keys
        state.post_order.append(key)
        return key

    @staticmethod
    def _assign_key(name: str, state: _BuildState) -> str:
        count = state.name_counts.get(name, 0)
        state.name_counts[name] = count + 1
        return name if count == 0 else f"{name}#{count}"

    @staticmethod
    def _collect_providers(key: str, node: ModuleNode) -> Dict[Token, ProviderBinding]:
        providers: Dict[Token, ProviderBinding] = {}
        for entry in node.providers:
            definition = normalize_provider(entry, key)
            if definition.token in providers:
                raise ModuleResolutionError(
                    GraphErrorKind.DUPLICATE_PROVIDER,
                    f"Token {token_name(definition.token)} is provided twice in module {key}",
                    token=definition.token,
                    module=key,
                )
            providers[definition.token] = ProviderBinding(definition=definition, owner=key)
        for controller in node.controllers:
            if controller not in providers:
                providers[controller] = ProviderBinding(definition=ProviderDefinition.for_class(controller), owner=key)
        return providers

    @staticmethod
    def _collect_exports(
        module: ResolvedModule,
        resolved: Dict[str, ResolvedModule],
        ref_keys: Dict[int, str],
    ) -> Dict[Token, ProviderBinding]:
        exports: Dict[Token, ProviderBinding] = {}
        for exported in module.node.exports:
            # exporting an imported module re-exports everything it exports
            if isinstance(exported, (ModuleNode, DynamicModule)):
                if id(exported) not in ref_keys:
                    raise ModuleResolutionError(
                        GraphErrorKind.INVALID_EXPORT,
                        f"Module {module.key} exports a module it does not import",
                        module=module.key,
                    )
                exports.update(resolved[ref_keys[id(exported)]].exports)
                continue
            if exported in module.providers:
                exports[exported] = module.providers[exported]
                continue
            binding = next(
                (
                    resolved[imported_key].exports[exported]
                    for imported_key in module.imports
                    if exported in resolved[imported_key].exports
                ),
                None,
            )
            if binding is None:
                raise ModuleResolutionError(
                    GraphErrorKind.INVALID_EXPORT,
                    f"Module {module.key} exports {token_name(exported)} which it neither provides nor imports",
                    token=exported,
                    module=module.key,
                )
            exports[exported] = binding
        return exports

    def _validate_dependencies(self, module: ResolvedModule) -> None:
        for binding in module.providers.values():
            try:
                dependencies = self._resolver.get_dependencies(binding.definition)
            except UnresolvableDependencyError as e:
                raise ModuleResolutionError(
                    GraphErrorKind.UNRESOLVED_TOKEN,
                    str(e),
                    token=binding.token,
                    module=module.key,
                ) from e
            for dependency in dependencies:
                if dependency.optional or dependency.token in module.visible:
                    continue
                raise ModuleResolutionError(
                    GraphErrorKind.UNRESOLVED_TOKEN,
                    f"{token_name(binding.token)} depends on {token_name(dependency.token)} "
                    f"(parameter '{dependency.name}'), which is not visible in module {module.key}",
                    token=dependency.token,
                    module=module.key,
                )

    def _collect_enhancers(self, modules: Dict[str, ResolvedModule]) -> GlobalEnhancers:
        enhancers = GlobalEnhancers()
        for kind in ("guards", "interceptors", "pipes", "filters", "middlewares"):
            bindings = [
                EnhancerBinding(enhancer=enhancer, module=key)
                for key, module in modules.items()
                for enhancer in getattr(module.node, kind)
            ]
            setattr(enhancers, kind, self._compose(kind, bindings))
        return enhancers

    def _compose(self, kind: str, bindings: List[EnhancerBinding]) -> List[EnhancerBinding]:
        if self._composition == CompositionPolicy.CONCATENATE:
            return bindings

        composed: List[EnhancerBinding] = []
        seen: List[Any] = []
        for binding in bindings:
            identity = _enhancer_identity(binding.enhancer)
            if identity in seen:
                if self._composition == CompositionPolicy.UNIQUE:
                    raise ModuleResolutionError(
                        GraphErrorKind.DUPLICATE_GLOBAL,
                        f"Global {kind[:-1]} {token_name(identity)} is declared by more than one module",
                        token=identity,
                        module=binding.module,
                    )
                continue
            seen.append(identity)
            composed.append(binding)
        return composed


def _enhancer_identity(enhancer: Any) -> Any:
    # middleware bindings compare by the middleware they wrap
    return getattr(enhancer, "middleware", enhancer)


def normalize_provider(entry: Any, module: Optional[str] = None) -> ProviderDefinition:
    """Turn a ``providers`` list entry into a provider definition.

    A bare class is shorthand for a singleton class provider keyed by itself.

    Raises:
        ModuleResolutionError: If the entry is neither a class nor a definition.
    """
    if isinstance(entry, ProviderDefinition):
        return entry
    if isinstance(entry, type):
        return ProviderDefinition.for_class(entry)
    raise ModuleResolutionError(
        GraphErrorKind.INVALID_MODULE,
        f"Provider entry {entry!r} is neither a class nor a ProviderDefinition",
        module=module,
    )
