"""Unit tests for ModuleContainer."""

import pytest

from plugkit.application.container import ModuleContainer
from plugkit.application.module_graph import ModuleGraphBuilder
from plugkit.domain import (
    CircularDependencyError,
    IContainer,
    ModuleNode,
    ProviderConstructionError,
    ProviderDefinition,
    Scope,
    UnresolvableDependencyError,
)


class Repository:
    pass


class Service:
    def __init__(self, repo: Repository):
        self.repo = repo


def _container(root):
    return ModuleContainer(ModuleGraphBuilder().build(root))


class TestContainerInitialization:
    """Test cases for ModuleContainer initialization."""

    def test_container_implements_interface(self):
        """Test that ModuleContainer implements IContainer."""
        assert isinstance(_container(ModuleNode(name="AppModule")), IContainer)

    def test_root_module(self):
        """Test that the root module key is exposed."""
        assert _container(ModuleNode(name="AppModule")).root_module == "AppModule"


class TestResolve:
    """Test cases for resolution."""

    def test_resolve_with_dependencies(self):
        """Test resolving a provider with constructor dependencies."""
        container = _container(ModuleNode(name="AppModule", providers=[Repository, Service]))

        service = container.resolve(Service)

        assert isinstance(service, Service)
        assert service.repo is container.resolve(Repository)

    def test_singleton_returns_same_instance(self):
        """Test that singleton providers are shared."""
        container = _container(ModuleNode(name="AppModule", providers=[Repository]))

        assert container.resolve(Repository) is container.resolve(Repository)

    def test_transient_returns_new_instances(self):
        """Test that transient providers are rebuilt on each resolution."""
        container = _container(
            ModuleNode(name="AppModule", providers=[ProviderDefinition.for_class(Repository, scope=Scope.TRANSIENT)])
        )

        assert container.resolve(Repository) is not container.resolve(Repository)

    def test_value_and_factory_providers(self):
        """Test value and factory strategies."""
        container = _container(
            ModuleNode(
                name="AppModule",
                providers=[
                    ProviderDefinition.for_value("base_url", "http://localhost"),
                    ProviderDefinition.for_factory("client", lambda url: {"url": url}, inject=["base_url"]),
                ],
            )
        )

        assert container.resolve("client") == {"url": "http://localhost"}

    def test_unknown_token_raises(self):
        """Test that resolving an unknown token raises."""
        container = _container(ModuleNode(name="AppModule"))

        with pytest.raises(UnresolvableDependencyError) as exc_info:
            container.resolve("missing")

        assert exc_info.value.module == "AppModule"

    def test_resolution_is_scoped_to_module(self):
        """Test that a token is only resolvable where it is visible."""
        data = ModuleNode(name="DataModule", providers=[Repository])
        container = _container(ModuleNode(name="AppModule", imports=[data]))

        assert container.resolve(Repository, "DataModule")
        with pytest.raises(UnresolvableDependencyError):
            container.resolve(Repository)

    def test_dependencies_resolve_from_declaring_module(self):
        """Test that an exported provider gets its dependencies from its own module."""
        data = ModuleNode(name="DataModule", providers=[Repository, Service], exports=[Service])
        container = _container(ModuleNode(name="AppModule", imports=[data]))

        service = container.resolve(Service)

        assert service.repo is container.resolve(Repository, "DataModule")

    def test_exported_singleton_is_shared_across_importers(self):
        """Test that importers share the exporter's singleton."""
        data = ModuleNode(name="DataModule", providers=[Repository], exports=[Repository])
        posts = ModuleNode(name="PostsModule", imports=[data])
        container = _container(ModuleNode(name="AppModule", imports=[data, posts]))

        assert container.resolve(Repository) is container.resolve(Repository, "PostsModule")

    def test_same_class_in_two_modules_gives_two_singletons(self):
        """Test that singletons are cached per declaring module."""
        first = ModuleNode(name="FirstModule", providers=[Repository])
        second = ModuleNode(name="SecondModule", providers=[Repository])
        container = _container(ModuleNode(name="AppModule", imports=[first, second]))

        assert container.resolve(Repository, "FirstModule") is not container.resolve(Repository, "SecondModule")

    def test_optional_dependency_uses_default(self):
        """Test that a missing optional dependency gets its default."""

        class Mailer:
            pass

        class Notifier:
            def __init__(self, mailer: Mailer = None):
                self.mailer = mailer

        container = _container(ModuleNode(name="AppModule", providers=[Notifier]))

        assert container.resolve(Notifier).mailer is None

    def test_circular_provider_dependency_raises(self):
        """Test that a provider requiring itself through a factory fails."""
        container = _container(
            ModuleNode(
                name="AppModule",
                providers=[
                    ProviderDefinition.for_factory("a", lambda b: b, inject=["b"]),
                    ProviderDefinition.for_factory("b", lambda a: a, inject=["a"]),
                ],
            )
        )

        with pytest.raises(CircularDependencyError) as exc_info:
            container.resolve("a")

        assert exc_info.value.dependency_chain == ["a", "b", "a"]

    def test_same_token_from_two_modules_is_not_circular(self):
        """Test that a token provided by two modules on one resolution path is not a cycle."""
        inner = ModuleNode(
            name="InnerModule",
            providers=[
                ProviderDefinition.for_value("x", "inner"),
                ProviderDefinition.for_factory("y", lambda x: f"y({x})", inject=["x"]),
            ],
            exports=["y"],
        )
        container = _container(
            ModuleNode(
                name="AppModule",
                imports=[inner],
                providers=[ProviderDefinition.for_factory("x", lambda y: f"outer[{y}]", inject=["y"])],
            )
        )

        assert container.resolve("x") == "outer[y(inner)]"

    def test_construction_failure_is_wrapped(self):
        """Test that constructor errors become ProviderConstructionError."""

        class Broken:
            def __init__(self):
                raise RuntimeError("boom")

        container = _container(ModuleNode(name="AppModule", providers=[Broken]))

        with pytest.raises(ProviderConstructionError, match="boom"):
            container.resolve(Broken)


class TestHas:
    """Test cases for has."""

    def test_has(self):
        """Test visibility checks."""
        container = _container(ModuleNode(name="AppModule", providers=[Repository]))

        assert container.has(Repository)
        assert not container.has("missing")

    def test_unhashable_token(self):
        """Test that unhashable tokens are reported as missing."""
        container = _container(ModuleNode(name="AppModule"))

        assert not container.has([])


class TestEnhancers:
    """Test cases for instantiate and get_enhancer."""

    def test_instantiate_injects_constructor(self):
        """Test that unregistered classes get their dependencies."""

        class Guard:
            def __init__(self, repo: Repository):
                self.repo = repo

        container = _container(ModuleNode(name="AppModule", providers=[Repository]))

        guard = container.instantiate(Guard)

        assert guard.repo is container.resolve(Repository)

    def test_get_enhancer_returns_instances_as_is(self):
        """Test that enhancer instances are not touched."""
        container = _container(ModuleNode(name="AppModule"))
        guard = object()

        assert container.get_enhancer(guard) is guard

    def test_get_enhancer_prefers_visible_provider(self):
        """Test that an enhancer class registered as provider is resolved."""
        container = _container(ModuleNode(name="AppModule", providers=[Repository]))

        assert container.get_enhancer(Repository) is container.resolve(Repository)

    def test_get_enhancer_instantiates_once_per_module(self):
        """Test that unregistered enhancer classes are cached per module."""

        class Interceptor:
            pass

        container = _container(ModuleNode(name="AppModule"))

        first = container.get_enhancer(Interceptor)

        assert container.get_enhancer(Interceptor) is first
        container.clear()
        assert container.get_enhancer(Interceptor) is not first


class TestControllers:
    """Test cases for controller lookups."""

    def test_controller_module(self):
        """Test that controllers are mapped to their declaring module."""

        class PostsController:
            pass

        posts = ModuleNode(name="PostsModule", controllers=[PostsController])
        container = _container(ModuleNode(name="AppModule", imports=[posts]))

        assert container.get_controllers() == [(PostsController, "PostsModule")]
        assert container.get_controller_module(PostsController) == "PostsModule"
        assert container.get_controller_module(Repository) == "AppModule"


class TestClear:
    """Test cases for clear."""

    def test_clear_drops_singletons(self):
        """Test that clear forces new singleton instances."""
        container = _container(ModuleNode(name="AppModule", providers=[Repository]))
        first = container.resolve(Repository)

        container.clear()

        assert container.resolve(Repository) is not first
