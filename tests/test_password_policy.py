from narcisse.services.password_policy import evaluate_password


def test_empty_password_is_rejected_with_message():
    result = evaluate_password("   ")
    assert result.valid is False
    assert result.score == 0
    assert result.feedback == "Mot de passe requis."


def test_weak_password_is_rejected_with_feedback():
    result = evaluate_password("password")
    assert result.valid is False
    assert result.feedback


def test_password_built_from_user_inputs_is_weak():
    result = evaluate_password("jeanmartin", ["jean@example.com", "Jean", "Martin"])
    assert result.valid is False


def test_strong_password_is_accepted():
    result = evaluate_password("Colmar-Barque-Petite-Venise-2031!")
    assert result.valid is True
    assert result.score >= 3
    assert result.feedback is None
