from flexstore.auth.passwords import hash_password, verify_password


def test_hash_and_verify():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


def test_non_bcrypt_hash_does_not_verify():
    assert verify_password("anything", "plaintext") is False
