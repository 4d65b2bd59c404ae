from dataclasses import dataclass
from enum import Enum

import pytest

from eventhub.channels import Channel
from eventhub.errors import InvalidObserver, InvalidTopic
from eventhub.hub import EventHub
from eventhub.subject import Subject


class Account(Subject):
    """Minimal domain subject: notifies on login/logout."""

    def __init__(self, hub=None):
        super().__init__(hub)
        self.online = set()

    def login(self, user):
        self.online.add(user)
        return self.notify("login", {"user": user})

    def logout(self, user):
        self.online.discard(user)
        return self.notify("logout", {"user": user})


def test_subject_owns_private_hub():
    a, b = Account(), Account()
    assert a.hub is not b.hub

    seen = []
    a.attach("login", lambda topic, payload: seen.append(payload["user"]))
    b.login("mallory")
    a.login("alice")

    assert seen == ["alice"]


def test_subject_attach_detach():
    acct = Account()
    seen = []
    h = acct.attach("login", lambda topic, payload: seen.append(payload["user"]))

    report = acct.login("alice")
    assert report.notified == 1

    assert acct.detach(h) is True
    assert acct.detach(h) is False
    acct.login("bob")
    assert seen == ["alice"]


def test_subject_detach_all_for_topic():
    acct = Account()
    seen = []
    acct.attach("login", lambda topic, payload: seen.append("l1"))
    acct.attach("login", lambda topic, payload: seen.append("l2"))
    acct.attach("logout", lambda topic, payload: seen.append("out"))

    assert acct.detach_all("login") == 2
    acct.login("alice")
    acct.logout("alice")
    assert seen == ["out"]


def test_subject_with_injected_hub():
    hub = EventHub()
    acct = Account(hub)
    seen = []
    hub.subscribe("logout", lambda topic, payload: seen.append(payload))

    acct.logout("alice")
    assert acct.hub is hub
    assert seen == [{"user": "alice"}]


@dataclass
class LoginEvent:
    user: str


class StrTopic(str, Enum):
    LOGIN = "login"


def test_channel_delivers_payload_only():
    hub = EventHub()
    logins = Channel(hub, "login", LoginEvent)
    users = []
    logins.subscribe(lambda evt: users.append(evt.user))

    report = logins.publish(LoginEvent("alice"))

    assert users == ["alice"]
    assert report.notified == 1
    assert logins.subscriber_count() == 1


def test_channel_shares_topic_with_raw_hub_subscribers():
    hub = EventHub()
    logins = Channel(hub, "login")
    raw = []
    hub.subscribe("login", lambda topic, payload: raw.append((topic, payload)))

    logins.publish({"user": "bob"})
    assert raw == [("login", {"user": "bob"})]


def test_channel_type_check_before_dispatch():
    hub = EventHub()
    logins = Channel(hub, "login", LoginEvent)
    calls = []
    logins.subscribe(calls.append)

    with pytest.raises(TypeError):
        logins.publish({"user": "alice"})
    assert calls == []


def test_channel_unsubscribe_and_validation():
    hub = EventHub()
    ch = Channel(hub, "tick", int)
    h = ch.subscribe(lambda n: None)
    assert ch.unsubscribe(h) is True
    assert ch.subscriber_count() == 0

    with pytest.raises(InvalidTopic):
        Channel(hub, "")
    with pytest.raises(InvalidObserver):
        ch.subscribe(123)


def test_channel_unsubscribe_ignores_other_topics():
    hub = EventHub()
    logins = Channel(hub, "login")
    other = hub.subscribe("other", lambda topic, payload: None)

    assert logins.unsubscribe(other) is False
    assert hub.is_subscribed(other)
    assert hub.subscriber_count("other") == 1

    # an enum member equal to "login" is still a different topic
    symbolic = hub.subscribe(StrTopic.LOGIN, lambda topic, payload: None)
    assert logins.unsubscribe(symbolic) is False
    assert hub.is_subscribed(symbolic)


def test_channel_failures_are_isolated():
    hub = EventHub(log_failures=False)
    ch = Channel(hub, "tick", int)
    seen = []

    def bad(n):
        raise ValueError(n)

    ch.subscribe(bad)
    ch.subscribe(seen.append)

    report = ch.publish(7)
    assert seen == [7]
    assert len(report.failures) == 1
    assert repr(ch) == "Channel('tick', int)"
