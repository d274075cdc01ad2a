from leave_tracker.tokens import TOKEN_BYTES, TokenScope, new_id, new_token


def test_tokens_are_long_and_unique():
    tokens = {new_token() for _ in range(200)}
    assert len(tokens) == 200
    assert all(len(token) >= TOKEN_BYTES for token in tokens)


def test_ids_are_unique_hex():
    ids = {new_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(int(value, 16) >= 0 for value in ids)


def test_scope_resolves_only_its_group():
    entries = [
        {"id": "1", "token": "alpha"},
        {"id": "2", "token": "beta"},
        {"id": "3", "token": "alpha"},
        {"id": "4"},
    ]
    scope = TokenScope(entries)

    assert scope.record_ids("alpha") == ["1", "3"]
    assert scope.record_ids("beta") == ["2"]
    assert scope.resolve("alp") == []
    assert scope.resolve("") == []
    assert scope.resolve("ünïcode") == []
