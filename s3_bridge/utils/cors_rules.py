"""
CORS rule generation, validation and analysis. Pure functions, no I/O.
"""
from typing import Any, Dict, Iterable, List, Optional

from s3_bridge.core.errors import ErrorCode, S3BridgeError
from s3_bridge.models.s3_model import CorsRule

MAX_RULES = 100
MAX_RULE_ID_LENGTH = 255
VALID_METHODS = ("GET", "PUT", "POST", "DELETE", "HEAD")
UPLOAD_METHODS = ("PUT", "POST")
WRITE_METHODS = ("PUT", "POST", "DELETE")

READ_EXPOSE_HEADERS = ["Content-Length", "Content-Type", "ETag", "Last-Modified"]

SCENARIOS = ("public_read", "upload_only", "full_access", "presigned_upload", "mixed")


def generate_cors_rules(
    scenario: str = "public_read",
    origins: Optional[List[str]] = None,
    extra_config: Optional[Dict[str, Any]] = None,
) -> List[CorsRule]:
    """
    Ready-made rule sets.

    Known scenarios: public_read, upload_only, full_access, presigned_upload,
    mixed. Anything else builds a single "Custom" rule from ``extra_config``
    (keys are CorsRule field names). ``extra_config["max_age"]`` overrides the
    cache time of the named scenarios.
    """
    origins = list(origins or ["*"])
    extra_config = dict(extra_config or {})
    max_age = extra_config.get("max_age")

    if scenario == "public_read":
        return [CorsRule(
            id="PublicRead",
            allowed_methods=["GET", "HEAD"],
            allowed_origins=origins,
            allowed_headers=["Range"],
            expose_headers=list(READ_EXPOSE_HEADERS),
            max_age_seconds=max_age if max_age is not None else 86400,
        )]
    if scenario == "upload_only":
        return [CorsRule(
            id="UploadOnly",
            allowed_methods=["PUT", "POST"],
            allowed_origins=origins,
            allowed_headers=["Content-Type", "Content-Length", "Content-MD5", "x-amz-*"],
            max_age_seconds=max_age if max_age is not None else 3600,
        )]
    if scenario == "full_access":
        return [CorsRule(
            id="FullAccess",
            allowed_methods=list(VALID_METHODS),
            allowed_origins=origins,
            allowed_headers=["*"],
            expose_headers=list(READ_EXPOSE_HEADERS),
            max_age_seconds=max_age if max_age is not None else 3600,
        )]
    if scenario == "presigned_upload":
        return [CorsRule(
            id="PresignedUpload",
            allowed_methods=["PUT"],
            allowed_origins=origins,
            allowed_headers=["Content-Type", "Content-Length"],
            max_age_seconds=max_age if max_age is not None else 600,
        )]
    if scenario == "mixed":
        return [
            CorsRule(
                id="PublicRead",
                allowed_methods=["GET", "HEAD"],
                allowed_origins=["*"],
                expose_headers=["Content-Length", "Content-Type", "ETag"],
                max_age_seconds=86400,
            ),
            CorsRule(
                id="RestrictedUpload",
                allowed_methods=["PUT", "POST"],
                allowed_origins=origins,
                allowed_headers=["Content-Type", "Content-Length", "x-amz-*"],
                max_age_seconds=max_age if max_age is not None else 3600,
            ),
        ]

    extra_config.pop("max_age", None)
    base = {
        "id": "Custom",
        "allowed_methods": ["GET"],
        "allowed_origins": origins,
        "max_age_seconds": max_age if max_age is not None else 3600,
    }
    base.update(extra_config)
    return [CorsRule(**base)]


def validate_cors_rules(rules: Iterable[CorsRule]) -> List[CorsRule]:
    """
    Check a rule set before it is sent.

    Raises:
        S3BridgeError: with one of the CORS validation codes
    """
    rules = list(rules)
    if len(rules) > MAX_RULES:
        raise S3BridgeError(
            f"CORS configuration cannot have more than {MAX_RULES} rules",
            code=ErrorCode.TOO_MANY_RULES.value,
            data={"rules_count": len(rules)},
        )

    for index, rule in enumerate(rules):
        if not rule.allowed_methods:
            raise S3BridgeError(
                f"Rule {index}: AllowedMethods is required",
                code=ErrorCode.MISSING_ALLOWED_METHODS.value,
                data={"rule_index": index},
            )
        if not rule.allowed_origins:
            raise S3BridgeError(
                f"Rule {index}: AllowedOrigins is required",
                code=ErrorCode.MISSING_ALLOWED_ORIGINS.value,
                data={"rule_index": index},
            )
        invalid = [m for m in rule.allowed_methods if m.upper() not in VALID_METHODS]
        if invalid:
            raise S3BridgeError(
                f"Rule {index}: invalid HTTP method(s): {', '.join(invalid)}",
                code=ErrorCode.INVALID_HTTP_METHOD.value,
                data={"rule_index": index, "invalid_methods": invalid, "valid_methods": list(VALID_METHODS)},
            )
        if rule.id and len(rule.id) > MAX_RULE_ID_LENGTH:
            raise S3BridgeError(
                f"Rule {index}: ID cannot exceed {MAX_RULE_ID_LENGTH} characters",
                code=ErrorCode.RULE_ID_TOO_LONG.value,
                data={"rule_index": index},
            )
    return rules


def upload_check(rules: Iterable[CorsRule], origin: str = "*") -> Dict[str, Any]:
    """Which rules let ``origin`` upload (PUT/POST)"""
    rules = list(rules)
    allowed_methods: List[str] = []
    matching_rules: List[CorsRule] = []

    for rule in rules:
        if not rule.allows_origin(origin):
            continue
        methods = [m for m in UPLOAD_METHODS if m in {x.upper() for x in rule.allowed_methods}]
        if methods:
            matching_rules.append(rule)
            allowed_methods.extend(m for m in methods if m not in allowed_methods)

    return {
        "origin": origin,
        "allows_upload": bool(matching_rules),
        "allowed_methods": allowed_methods,
        "matching_rules": matching_rules,
        "rules_checked": len(rules),
    }


def _merge_unique(target: List[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def analyze_cors_rules(rules: Iterable[CorsRule], bucket: str = "") -> Dict[str, Any]:
    """Capabilities, security warnings and recommendations for a rule set"""
    rules = list(rules)
    analysis: Dict[str, Any] = {
        "bucket": bucket,
        "has_cors": bool(rules),
        "rules_count": len(rules),
        "supports_public_read": False,
        "supports_upload": False,
        "supports_delete": False,
        "allows_all_origins": False,
        "max_cache_time": 0,
        "security_warnings": [],
        "capabilities": [],
        "origins_summary": [],
        "methods_summary": [],
    }

    for rule in rules:
        methods = [m.upper() for m in rule.allowed_methods]

        if "GET" in methods:
            analysis["supports_public_read"] = True
            _merge_unique(analysis["capabilities"], ["read"])
        if set(methods) & set(UPLOAD_METHODS):
            analysis["supports_upload"] = True
            _merge_unique(analysis["capabilities"], ["upload"])
        if "DELETE" in methods:
            analysis["supports_delete"] = True
            _merge_unique(analysis["capabilities"], ["delete"])

        if "*" in rule.allowed_origins:
            analysis["allows_all_origins"] = True
            if set(methods) & set(WRITE_METHODS):
                _merge_unique(analysis["security_warnings"], ["Allows write operations from any origin (*)"])
        if "*" in rule.allowed_headers:
            _merge_unique(analysis["security_warnings"], ["Allows all headers (*)"])

        analysis["max_cache_time"] = max(analysis["max_cache_time"], rule.max_age_seconds or 0)
        _merge_unique(analysis["origins_summary"], rule.allowed_origins)
        _merge_unique(analysis["methods_summary"], methods)

    analysis["recommendations"] = cors_recommendations(analysis)
    return analysis


def cors_recommendations(analysis: Dict[str, Any]) -> List[str]:
    recommendations = []
    if analysis["allows_all_origins"] and analysis["supports_upload"]:
        recommendations.append('Consider restricting allowed origins instead of using "*" for upload operations')
    if analysis["supports_delete"] and analysis["allows_all_origins"]:
        recommendations.append("DELETE operations with wildcard origins pose security risks")
    if analysis["max_cache_time"] > 86400:
        recommendations.append("Very long cache times may cause issues when updating CORS configuration")
    if not analysis["has_cors"] and analysis["bucket"]:
        recommendations.append("Consider adding CORS configuration if cross-origin access is needed")
    if not analysis["security_warnings"] and analysis["has_cors"]:
        recommendations.append("CORS configuration appears secure")
    return recommendations
