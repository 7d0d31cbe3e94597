# container_apps.py
"""
Compose services derived from the Container Apps of an evaluated program.

Every container of an ``azure-native:app:ContainerApp`` resource becomes one
service, in evaluation order. An image that points at an image resource with a
build context is built locally from that context; any other literal image is
pulled as-is. External ingress publishes the target port on the host.
"""

from typing import Any, Dict, List, Optional, Set

import pulumi

from .config import EvaluatorConfig
from .document import Mapping, Node, Scalar, Sequence, to_python
from .errors import MissingValueError, ParseError, UnknownReferenceError
from .evaluator import Plan
from .references import parse_interpolation, render
from .template import RESOURCE, Entity, Template
from .topology import Service, Topology

CONTAINER_APP_TYPE = "azure-native:app:ContainerApp"


def _get(node: Optional[Node], *keys: str) -> Optional[Node]:
    for key in keys:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _plain(node: Optional[Node]) -> Dict[str, Any]:
    return to_python(node) if isinstance(node, Mapping) else {}


def _build_context(template: Template, image: str, builtins: Dict[str, Any]) -> Optional[Dict[str, str]]:
    """Resolve an image reference to the build context of the image resource it names."""
    reference = parse_interpolation(image).references[0]
    if reference.entity not in template.names:
        return None
    build = _get(template.entity(reference.entity).properties, "build")
    if isinstance(build, Mapping):
        build = build.get("context")
    if not isinstance(build, Scalar) or not isinstance(build.value, str):
        return None

    try:
        context = render(build, {}, builtins=builtins)
    except (UnknownReferenceError, MissingValueError) as e:
        pulumi.log.warn(f"Build context of '{reference.entity}' cannot be resolved locally: {e}")
        return None
    return {"context": str(context)}


def build_ports(container_name: str, ingress: Dict[str, Any], dapr: Dict[str, Any]) -> List[str]:
    """Host port mappings for a container behind the app's ingress.

    With Dapr enabled the ingress forwards to the Dapr app port, and only the
    container named by ``appId`` receives traffic.
    """
    target = ingress.get("targetPort")
    if not ingress.get("external") or target is None:
        return []
    if dapr.get("enabled"):
        if dapr.get("appId") != container_name:
            return []
        return [f"{target}:{dapr.get('appPort', target)}"]
    return [f"{target}:{target}"]


def app_services(template: Template, app: Entity, builtins: Dict[str, Any]) -> List[Service]:
    containers = _get(app.properties, "template", "containers")
    if not isinstance(containers, Sequence):
        pulumi.log.warn(f"Container app '{app.name}' declares no containers")
        return []

    ingress = _plain(_get(app.properties, "configuration", "ingress"))
    dapr = _plain(_get(app.properties, "configuration", "dapr"))

    services = []
    for container in containers:
        name = _get(container, "name")
        image = _get(container, "image")
        if not isinstance(name, Scalar) or not isinstance(image, Scalar) or image.value is None:
            raise ParseError(f"Containers of '{app.name}' need a 'name' and an 'image'", container.line or None)
        container_name = str(name.value)
        image_text = str(image.value)

        build = None
        if parse_interpolation(image_text).references:
            build = _build_context(template, image_text, builtins)
            if build is None:
                pulumi.log.warn(f"Skipping container '{container_name}' of '{app.name}': no local build for '{image_text}'")
                continue

        services.append(
            Service(
                name=container_name,
                image=None if build else image_text,
                build=build,
                ports=build_ports(container_name, ingress, dapr),
                line=container.line,
            )
        )
    return services


def build_services(plan: Plan, config: Optional[EvaluatorConfig] = None) -> Topology:
    """Collect the services of every container app of a plan, in evaluation order."""
    config = config or EvaluatorConfig()
    builtins = config.builtin_values()

    services: List[Service] = []
    seen: Set[str] = set()
    for name in plan.order:
        entity = plan.template.entity(name)
        if entity.kind != RESOURCE or entity.type != CONTAINER_APP_TYPE:
            continue
        for service in app_services(plan.template, entity, builtins):
            if service.name in seen:
                raise ParseError(f"Container '{service.name}' is declared by more than one app", service.line or None)
            seen.add(service.name)
            services.append(service)

    pulumi.log.info(f"Derived {len(services)} services from container apps")
    return Topology(services=services)
