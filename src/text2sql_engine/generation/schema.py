"""
Schema Text
===========

Compact schema descriptions handed to generators as prompt context. The
text is opaque to the rest of the pipeline.
"""

from typing import Protocol

from text2sql_engine.models import Domain

DEFAULT_SCHEMA_TEXT = {
    Domain.FINANCE: "\n".join([
        "clients(client_id, client_code, client_name, client_type, risk_level, "
        "register_date, total_assets, manager_id, is_active, create_time)",
        "products(product_id, product_code, product_name, product_type, risk_rating, "
        "currency, management_fee, inception_date, is_active)",
        "portfolios(portfolio_id, portfolio_code, client_id, portfolio_type, "
        "target_return, inception_date, current_value, contribution_amount, create_time)",
        "transactions(transaction_id, trade_id, portfolio_id, product_id, "
        "transaction_type, trade_date, settlement_date, transaction_quantity, "
        "transaction_price, transaction_amount, counterparty_id, status)",
        "holdings(holding_id, portfolio_id, product_id, trade_date, holding_quantity, "
        "average_cost, market_value, unrealized_pnl)",
        "counterparties(counterparty_id, counterparty_code, counterparty_name, "
        "counterparty_type, credit_rating, country_code, is_active, establish_date)",
        "managers(manager_id, manager_code, manager_name, department_id, "
        "department_name, hire_date, client_count, performance_score)",
        "risk_metrics(metric_id, portfolio_id, calc_date, max_drawdown, volatility, "
        "beta, sharp_ratio, is_alert)",
    ]),
    Domain.HEALTHCARE: "\n".join([
        "patients(patient_id, name, gender, age, birth_date, blood_type, "
        "contact_phone, insurance_type, create_time)",
        "medical_encounters(encounter_id, patient_id, department_id, doctor_id, "
        "encounter_type, encounter_date, discharge_date, diagnosis_code, "
        "diagnosis_desc, total_cost, is_paid)",
        "departments_wards(dept_ward_id, code, name, type, parent_id, total_beds, "
        "available_beds, is_active)",
        "medical_orders(order_id, encounter_id, patient_id, order_type, item_name, "
        "order_quantity, order_date, start_datetime, execution_status, total_price)",
        "medical_staff(staff_id, employee_no, staff_name, gender, hire_date, "
        "department_id, job_title, is_active)",
        "billing_transactions(billing_id, patient_id, encounter_id, amount, "
        "billing_date, payment_method, payment_status)",
        "pharmacy_inventory(inventory_id, drug_id, batch_number, expiration_date, "
        "current_quantity, unit_cost, inventory_status)",
    ]),
}


class SchemaTextProvider(Protocol):
    def schema_text(self, domain: Domain) -> str:
        ...


class StaticSchemaText:
    """Schema text from a fixed per-domain mapping."""

    def __init__(self, texts: dict[Domain, str] | None = None) -> None:
        self.texts = texts if texts is not None else DEFAULT_SCHEMA_TEXT

    def schema_text(self, domain: Domain) -> str:
        return self.texts.get(domain, "")
