import pytest

from slskarr.exceptions import ProtocolMismatchError
from slskarr.slskd.identity import build_release_guid, compute_correlation_id, parse_release_guid


def test_correlation_id_is_stable_md5_of_path() -> None:
    assert compute_correlation_id("Artist\\Album") == "cb5f0f877e5af12b0185145aba17f546"
    assert compute_correlation_id("") == "d41d8cd98f00b204e9800998ecf8427e"


def test_correlation_id_is_deterministic_and_distinguishes_paths() -> None:
    first = compute_correlation_id("Music\\Artist\\Album")

    assert first == compute_correlation_id("Music\\Artist\\Album")
    assert first != compute_correlation_id("Music\\Artist\\Album (Deluxe)")
    assert first != compute_correlation_id("Music\\artist\\Album")
    assert len(first) == 32


def test_release_guid_round_trip() -> None:
    correlation_id = compute_correlation_id("Artist\\Album")
    guid = build_release_guid(correlation_id)

    assert guid == f"Slskd-{correlation_id}"
    assert parse_release_guid(guid) == correlation_id


@pytest.mark.parametrize(
    "guid",
    [
        "Torrent-cb5f0f877e5af12b0185145aba17f546",
        "Slskd-not-a-hash",
        "Slskd-cb5f0f877e5af12b0185145aba17f54",
        "",
    ],
)
def test_parse_release_guid_rejects_foreign_guids(guid: str) -> None:
    with pytest.raises(ProtocolMismatchError, match="doesn't appear to come from slskd"):
        parse_release_guid(guid)
