# ==============================================
# Record Schemas
# ==============================================
#
# PURPOSE:
#   The field mappings for the three source collections the tool
#   migrates. Each schema is data only; RecordTransformer applies it.
#
# SCHEMAS:
# --------
# - group
#     Entity table. _id parsed from "id" (a record without a valid
#     UUID fails), permissions unwrapped into a list, timestamps
#     keep their raw text when they will not parse.
#
# - member
#     Membership rows. _id generated, groupid must be a UUID,
#     timestamps that will not parse are dropped.
#
# - org_user_association
#     Association rows. _id generated, the source "id" is kept as
#     organizationid, assocblob JSON parsed into a sub-document,
#     createdate / updatedate renamed to createdat / updatedat.
#
# FUNCTION:
# ---------
# - get_schema(name) -> RecordSchema
#
# ==============================================

from typing import Dict

from collection_etl.errors import ConfigurationError
from collection_etl.normalization.record_transformer import (
    EmbeddedDocumentRule,
    FailurePolicy,
    GeneratedIdentifierRule,
    IdentifierRule,
    RecordSchema,
    StringListRule,
    TextRule,
    TimestampRule,
    UuidRule,
)

GROUP_SCHEMA = RecordSchema(
    name="group",
    description="groups keyed by their own UUID",
    rules=(
        IdentifierRule("id"),
        TextRule("contextid"),
        TextRule("contexttype"),
        TimestampRule("createdat"),
        TextRule("name"),
        TextRule("parentid"),
        StringListRule("permissions"),
        TextRule("system"),
        TextRule("type"),
        TimestampRule("updatedat"),
    ),
)

MEMBER_SCHEMA = RecordSchema(
    name="member",
    description="group memberships with generated keys",
    rules=(
        GeneratedIdentifierRule(),
        TextRule("memberid"),
        TextRule("system"),
        TextRule("membertype"),
        UuidRule("groupid", on_failure=FailurePolicy.FAIL_RECORD, required=True),
        TimestampRule("createdat", on_failure=FailurePolicy.DROP_ON_FAILURE),
        TimestampRule("updatedat", on_failure=FailurePolicy.DROP_ON_FAILURE),
    ),
)

ORG_USER_ASSOCIATION_SCHEMA = RecordSchema(
    name="org_user_association",
    description="organization/user associations with generated keys",
    rules=(
        GeneratedIdentifierRule(),
        TextRule("id", target="organizationid"),
        TextRule("associd"),
        TextRule("authgroupid"),
        TextRule("authgrouptype"),
        TextRule("status"),
        EmbeddedDocumentRule("assocblob"),
        TimestampRule("createdate", target="createdat"),
        TimestampRule("updatedate", target="updatedat"),
    ),
)

SCHEMAS: Dict[str, RecordSchema] = {
    schema.name: schema
    for schema in (GROUP_SCHEMA, MEMBER_SCHEMA, ORG_USER_ASSOCIATION_SCHEMA)
}


def get_schema(name: str) -> RecordSchema:
    """
    Look up a schema by name.

    Raises:
        ConfigurationError: If no schema has that name
    """
    try:
        return SCHEMAS[name]
    except KeyError:
        known = ", ".join(sorted(SCHEMAS))
        raise ConfigurationError(f"unknown schema {name!r} (known: {known})") from None
