from narcisse.services.manual_payments import (
    CheckDetails,
    ManualPaymentState,
    VoucherDetails,
    amount_from_metadata,
    build_manual_payment_payload,
    compute_voucher_total,
    validate_manual_payment_state,
)


def test_fixed_value_voucher_totals():
    assert compute_voucher_total("hotel_bristol", 2) == "100.00"
    assert compute_voucher_total("ancv", 2) == ""


def test_missing_provider_message():
    assert validate_manual_payment_state(ManualPaymentState()) == "Sélectionnez un moyen de paiement."


def test_voucher_requires_partner_and_reference():
    state = ManualPaymentState(provider="voucher")
    assert validate_manual_payment_state(state) == "Sélectionnez l’émetteur du bon."
    state.voucher = VoucherDetails(partner_id="hotel_riviera")
    assert validate_manual_payment_state(state) == "Ajoutez la référence du bon."


def test_open_value_voucher_requires_amount():
    state = ManualPaymentState(provider="voucher", voucher=VoucherDetails(partner_id="ancv", reference="A-1"))
    assert validate_manual_payment_state(state) == "Indiquez le montant couvert par le bon."


def test_check_requires_number():
    state = ManualPaymentState(provider="check", check=CheckDetails(bank="CIC"))
    assert validate_manual_payment_state(state) == "Le numéro du chèque est obligatoire."


def test_voucher_payload_and_amount():
    state = ManualPaymentState(
        provider="voucher",
        voucher=VoucherDetails(partner_id="hotel_astoria", reference="  AST  42 ", quantity=1),
    )
    result = build_manual_payment_payload(state)
    assert result.ok
    voucher = result.payment_method["metadata"]["voucher"]
    assert result.payment_method["methodType"] == "Hôtel Astoria"
    assert voucher["reference"] == "AST 42"
    assert voucher["totalAmount"] == "60.00"
    assert amount_from_metadata(result.payment_method["metadata"], 900) == 6000


def test_amount_falls_back_to_booking_price():
    assert amount_from_metadata(None, 1800) == 1800
    assert amount_from_metadata({"check": {"amount": ""}}, 1800) == 1800
    assert amount_from_metadata({"check": {"amount": "12,50"}}, 1800) == 1250
