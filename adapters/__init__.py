"""Generic AWS adapter engine and its utilities."""

from adapters.always_get import AlwaysGetAdapter
from adapters.arn import ARN, GLOBAL_SCOPE, format_scope, parse_arn, parse_scope
from adapters.attributes import to_attributes
from adapters.base import Adapter
from adapters.context import Context, background
from adapters.describe_only import DescribeOnlyAdapter
from adapters.errors import handle_tags_error, wrap_aws_error
from adapters.get_list import GetListAdapter
from adapters.limit import LimitBucket
from adapters.paginator import Paginator, TokenPaginator

__all__ = [
    "ARN",
    "Adapter",
    "AlwaysGetAdapter",
    "Context",
    "DescribeOnlyAdapter",
    "GLOBAL_SCOPE",
    "GetListAdapter",
    "LimitBucket",
    "Paginator",
    "TokenPaginator",
    "background",
    "format_scope",
    "handle_tags_error",
    "parse_arn",
    "parse_scope",
    "to_attributes",
    "wrap_aws_error",
]
