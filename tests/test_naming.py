from ddlscan.services.naming import (
    is_audit_column,
    is_audit_table,
    pluralize,
    singularize,
    to_camel_case,
    to_pascal_case,
    to_property_name,
)


def test_pluralize_regular_english_rules() -> None:
    assert pluralize("category") == "categories"
    assert pluralize("bus") == "buses"
    assert pluralize("day") == "days"
    assert pluralize("box") == "boxes"
    assert pluralize("branch") == "branches"
    assert pluralize("course") == "courses"
    assert pluralize("") == ""


def test_singularize_table_names() -> None:
    assert singularize("categories") == "category"
    assert singularize("classes") == "class"
    assert singularize("boxes") == "box"
    assert singularize("statuses") == "status"
    assert singularize("buses") == "bus"
    assert singularize("houses") == "house"
    assert singularize("purchases") == "purchase"
    assert singularize("users") == "user"
    assert singularize("address") == "address"


def test_case_conversions() -> None:
    assert to_pascal_case("order_items") == "OrderItems"
    assert to_pascal_case("USER_ROLE") == "UserRole"
    assert to_camel_case("created_at") == "createdAt"
    assert to_camel_case("id") == "id"


def test_to_property_name_strips_id_suffix() -> None:
    assert to_property_name("user_id") == "user"
    assert to_property_name("parent_category_id") == "parentCategory"
    assert to_property_name("status") == "status"
    assert to_property_name("id") == "id"


def test_audit_helpers() -> None:
    assert is_audit_column("created_at")
    assert is_audit_column("Fecha_Creacion")
    assert not is_audit_column("name")
    assert is_audit_table("users_aud")
    assert is_audit_table("orders_audit")
    assert is_audit_table("revision_info")
    assert not is_audit_table("audits")
