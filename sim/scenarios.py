from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from eventhub.hub import EventHub
from eventhub.models import SubscriptionHandle, Topic

# (observer name, topic, payload) as seen by each observer
Delivery = Tuple[str, Topic, Any]
Inbox = List[Delivery]

# Scripted steps:
#   ("publish", topic, payload)
#   ("unsubscribe", handle_name)
Step = Tuple[Any, ...]


@dataclass
class Scenario:
    name: str
    setup: Callable[[EventHub, Inbox], Dict[str, SubscriptionHandle]]
    steps: List[Step] = field(default_factory=list)
    description: str = ""


def recorder(name: str, inbox: Inbox):
    def _observer(topic: Topic, payload: Any) -> None:
        inbox.append((name, topic, payload))
    _observer.__qualname__ = name
    return _observer


def failing(name: str, inbox: Inbox, exc_type=RuntimeError):
    def _observer(topic: Topic, payload: Any) -> None:
        inbox.append((name, topic, payload))
        raise exc_type(f"{name} cannot handle {topic!r}")
    _observer.__qualname__ = name
    return _observer


# ---------------------------------------------------------------------------

def login() -> Scenario:
    # Two observers on "login"; the first leaves before bob logs in
    def setup(hub: EventHub, inbox: Inbox) -> Dict[str, SubscriptionHandle]:
        return {
            "observer1": hub.subscribe("login", recorder("observer1", inbox)),
            "observer2": hub.subscribe("login", recorder("observer2", inbox)),
        }

    return Scenario(
        name="login",
        setup=setup,
        steps=[
            ("publish", "login", {"user": "alice"}),
            ("unsubscribe", "observer1"),
            ("publish", "login", {"user": "bob"}),
            ("publish", "logout", {"user": "bob"}),
        ],
        description="alice then bob log in; observer1 unsubscribes in between",
    )


def faulty() -> Scenario:
    def setup(hub: EventHub, inbox: Inbox) -> Dict[str, SubscriptionHandle]:
        return {
            "A": hub.subscribe("tick", recorder("A", inbox)),
            "B": hub.subscribe("tick", failing("B", inbox)),
            "C": hub.subscribe("tick", recorder("C", inbox)),
        }

    return Scenario(
        name="faulty",
        setup=setup,
        steps=[
            ("publish", "tick", 1),
            ("unsubscribe", "B"),
            ("publish", "tick", 2),
        ],
        description="B raises on every tick until it is removed",
    )


def reentrant() -> Scenario:
    def setup(hub: EventHub, inbox: Inbox) -> Dict[str, SubscriptionHandle]:
        handles: Dict[str, SubscriptionHandle] = {}

        def greeter(topic: Topic, payload: Any) -> None:
            inbox.append(("greeter", topic, payload))
            if "latecomer" not in handles:
                handles["latecomer"] = hub.subscribe(topic, recorder("latecomer", inbox))

        def quitter(topic: Topic, payload: Any) -> None:
            inbox.append(("quitter", topic, payload))
            hub.unsubscribe(handles["quitter"])

        def bystander(topic: Topic, payload: Any) -> None:
            inbox.append(("bystander", topic, payload))

        # removes bystander mid-dispatch; bystander is still in that snapshot
        def evictor(topic: Topic, payload: Any) -> None:
            inbox.append(("evictor", topic, payload))
            hub.unsubscribe(handles["bystander"])

        handles["greeter"] = hub.subscribe("join", greeter)
        handles["quitter"] = hub.subscribe("join", quitter)
        handles["evictor"] = hub.subscribe("join", evictor)
        handles["bystander"] = hub.subscribe("join", bystander)
        return handles

    return Scenario(
        name="reentrant",
        setup=setup,
        steps=[
            ("publish", "join", "first"),
            ("publish", "join", "second"),
        ],
        description="observers (un)subscribe from inside their own callbacks",
    )


SCENARIOS = {
    "login": login,
    "faulty": faulty,
    "reentrant": reentrant,
}
