from narcisse.services.vat import compute_vat_from_gross


def test_breakdown_of_twelve_euros_at_default_rate():
    vat = compute_vat_from_gross(1200)
    assert (vat.net, vat.vat, vat.gross) == (1000, 200, 1200)
    assert vat.rate_percent == 20.0


def test_explicit_rate():
    vat = compute_vat_from_gross(1100, rate_percent=10)
    assert (vat.net, vat.vat) == (1000, 100)


def test_negative_amounts_for_refunds():
    vat = compute_vat_from_gross(-1200)
    assert vat.net == -1000
    assert vat.vat == -200
