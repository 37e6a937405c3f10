"""
Tests for sources.cloudfront: distributions in an account-only scope.
"""

import sys
import os
from unittest.mock import MagicMock

# Ensure project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from adapters import background
from sdp import Health
from sources.cloudfront import distribution_get_func, new_distribution_adapter

SCOPE = "123456789012"


def _client():
    client = MagicMock()
    client.get_distribution.return_value = {
        "Distribution": {
            "Id": "E1ABC",
            "ARN": "arn:aws:cloudfront::123456789012:distribution/E1ABC",
            "Status": "Deployed",
            "DomainName": "d111.cloudfront.net",
            "DistributionConfig": {
                "Aliases": {"Quantity": 1, "Items": ["www.example.com"]},
                "DefaultCacheBehavior": {
                    "CachePolicyId": "cp-1",
                    "LambdaFunctionAssociations": {
                        "Quantity": 1,
                        "Items": [{
                            "LambdaFunctionARN":
                                "arn:aws:lambda:us-east-1:123456789012:function:edge:1",
                        }],
                    },
                },
                "Origins": {
                    "Quantity": 1,
                    "Items": [{
                        "Id": "s3",
                        "DomainName": "assets.s3.eu-west-1.amazonaws.com",
                        "S3OriginConfig": {"OriginAccessIdentity": "origin-access-identity/cloudfront/E2"},
                    }],
                },
                "WebACLId": "arn:aws:wafv2:us-east-1:123456789012:global/webacl/site/abc",
            },
        },
    }
    client.list_tags_for_resource.return_value = {
        "Tags": {"Items": [{"Key": "env", "Value": "prod"}]},
    }
    return client


def _find(item, item_type):
    return [lq for lq in item.linked_item_queries if lq.query.type == item_type]


class TestDistribution:

    def test_get_func(self):
        item = distribution_get_func(background(), _client(), SCOPE, {"Id": "E1ABC"})

        item.validate()
        assert item.unique_attribute_value() == "E1ABC"
        assert item.health == Health.OK
        assert item.tags == {"env": "prod"}
        assert {lq.query.query for lq in _find(item, "dns")} >= {
            "d111.cloudfront.net", "www.example.com",
        }
        assert _find(item, "s3-bucket")[0].query.query == "assets"
        assert _find(item, "s3-bucket")[0].query.scope == SCOPE
        assert _find(item, "lambda-function")[0].query.scope == "123456789012.us-east-1"
        assert len(_find(item, "wafv2-web-acl")) == 1
        assert _find(item, "waf-web-acl") == []

    def test_adapter_is_account_scoped(self):
        client = _client()
        client.list_distributions.return_value = {
            "DistributionList": {"Items": [{"Id": "E1ABC"}]},
        }
        adapter = new_distribution_adapter(client, "123456789012")
        adapter.validate()

        assert adapter.scopes() == [SCOPE]
        items = adapter.list(background(), SCOPE)
        assert [i.unique_attribute_value() for i in items] == ["E1ABC"]
