import pytest

from herald.exceptions import InvalidRecipientError
from herald.routing import Notifiable, RoutingResolver
from tests.helpers import User


@pytest.fixture()
def resolver() -> RoutingResolver:
    return RoutingResolver()


class TestResolve:
    def test_explicit_routing_entry(self, resolver: RoutingResolver) -> None:
        assert resolver.resolve("email", {"email": "a@example.com"}) == "a@example.com"

    def test_routing_key_is_case_insensitive(self, resolver: RoutingResolver) -> None:
        assert resolver.resolve("sms", {"SMS": "+15550001"}) == "+15550001"

    def test_explicit_entry_wins_over_notifiable(self, resolver: RoutingResolver) -> None:
        user = User(email="user@example.com")
        address = resolver.resolve("email", {"email": "override@example.com"}, user)
        assert address == "override@example.com"

    def test_notifiable_used_when_map_lacks_channel(self, resolver: RoutingResolver) -> None:
        user = User(sms="+15550001")
        assert resolver.resolve("sms", {"email": "a@example.com"}, user) == "+15550001"

    def test_list_of_addresses(self, resolver: RoutingResolver) -> None:
        addresses = [{"email": "a@example.com"}, {"email": "b@example.com"}]
        assert resolver.resolve("email", {"email": addresses}) == addresses

    @pytest.mark.parametrize("empty", [None, "", [], {}])
    def test_empty_address_is_missing(self, resolver: RoutingResolver, empty: object) -> None:
        with pytest.raises(InvalidRecipientError):
            resolver.resolve("email", {"email": empty}, User(email=empty))

    def test_nothing_to_resolve_from(self, resolver: RoutingResolver) -> None:
        with pytest.raises(InvalidRecipientError) as exc_info:
            resolver.resolve("push")
        assert exc_info.value.details["channel_type"] == "push"


class TestBuildRoutingMap:
    def test_skips_unreachable_channels(self, resolver: RoutingResolver) -> None:
        user = User(email="a@example.com", sms="", push=None)
        routing = resolver.build_routing_map(user, ["email", "sms", "push"])
        assert routing == {"email": "a@example.com"}


def test_user_satisfies_notifiable_protocol() -> None:
    assert isinstance(User(), Notifiable)
