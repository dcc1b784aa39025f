import pytest

from gnoclient.coins import MAX_AMOUNT, Coin, CoinParseError, Coins, parse_coin, parse_coins


def test_parse_coins_keeps_order_for_display() -> None:
    coins = parse_coins("100ugnot,5foo/bar")

    assert str(coins) == "100ugnot,5foo/bar"
    assert coins.amount_of("ugnot") == 100
    assert coins.amount_of("foo/bar") == 5
    assert coins.amount_of("missing") == 0


def test_coins_equality_ignores_order() -> None:
    assert parse_coins("1foo,2bar") == parse_coins("2bar,1foo")
    assert hash(parse_coins("1foo,2bar")) == hash(parse_coins("2bar,1foo"))


def test_formatted_coins_parse_back_to_the_same_set() -> None:
    for raw in ["", "1ugnot", "7atom,0ugnot", "9223372036854775807ugnot"]:
        coins = parse_coins(raw)
        assert parse_coins(str(coins)) == coins


def test_empty_string_is_empty_coins() -> None:
    coins = parse_coins("   ")

    assert len(coins) == 0
    assert not coins
    assert coins.is_zero()


@pytest.mark.parametrize(
    "raw",
    ["ugnot", "100", "-1ugnot", "1UGNOT", "1u", "1ugnot,", "1ugnot,1ugnot", "1.5ugnot"],
)
def test_parse_coins_rejects_malformed_input(raw: str) -> None:
    with pytest.raises(CoinParseError):
        parse_coins(raw)


def test_amount_above_int64_is_rejected() -> None:
    with pytest.raises(CoinParseError):
        parse_coin(f"{MAX_AMOUNT + 1}ugnot")


def test_parse_coin_allows_whitespace_between_amount_and_denom() -> None:
    assert parse_coin(" 10000 ugnot ") == Coin(denom="ugnot", amount=10000)


def test_coins_rejects_duplicate_denominations() -> None:
    with pytest.raises(CoinParseError):
        Coins([Coin("ugnot", 1), Coin("ugnot", 2)])
