import pytest

from simple_ldap_auth import AuthResult, NotInitializedError, authenticate


def test_authenticate_success(directory, make_validator) -> None:
    directory.add_entry("cn=alice,ou=people,dc=example,dc=org", cn=["alice"], userPassword=[b"secret"])
    res = authenticate(make_validator(), "alice", "secret")
    assert res == AuthResult(success=True, username="alice")


def test_authenticate_wrong_password_is_not_an_error(directory, make_validator) -> None:
    directory.add_entry("cn=alice,ou=people,dc=example,dc=org", cn=["alice"], userPassword=[b"secret"])
    res = authenticate(make_validator(), "alice", "nope")
    assert res.success is False
    assert res.error is False
    assert res.error_message


def test_authenticate_directory_failure_is_flagged(directory, make_validator) -> None:
    directory.search_code = 1
    res = authenticate(make_validator(), "alice", "secret")
    assert res.success is False
    assert res.error is True
    assert "Error searching LDAP server" in res.error_message


def test_authenticate_requires_initialized_validator(directory, make_validator) -> None:
    with pytest.raises(NotInitializedError):
        authenticate(make_validator(initialize=False), "alice", "secret")
