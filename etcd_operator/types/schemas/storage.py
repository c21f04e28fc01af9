from marshmallow import fields, validate
from etcd_operator.types.base import BaseSchema
from etcd_operator.types.models.storage import EtcdClusterStorage

DEFAULT_STORAGE_SIZE = "4Gi"

# Kubernetes resource.Quantity grammar
QUANTITY_PATTERN = (
    r"^(\+|-)?(([0-9]+(\.[0-9]*)?)|(\.[0-9]+))"
    r"(([KMGTPE]i)|[numkMGTPE]|([eE](\+|-)?(([0-9]+(\.[0-9]*)?)|(\.[0-9]+))))?$"
)


class EtcdClusterStorageSchema(BaseSchema):
    """etcd cluster storage configurations."""

    __model__ = EtcdClusterStorage

    size = fields.Str(
        data_key="size",
        load_default=DEFAULT_STORAGE_SIZE,
        validate=validate.Regexp(QUANTITY_PATTERN, error="Invalid quantity: {input}"),
    )
