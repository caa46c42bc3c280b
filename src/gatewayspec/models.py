"""Canonical Pydantic models shared across all gatewayspec modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Pass inputs** -- supplied by the caller and never mutated by a pass:
    :class:`HTTPMethod`, :class:`IntegrationType`, :class:`MethodOptions`,
    :class:`RouteBinding`, :class:`CorsDefaults`, :class:`PassContext`, and
    :class:`RewriteConfig`.

**Authorizer variants** -- tagged unions that make conflicting authorizer
settings unrepresentable once a binding exists:
    :class:`PoolName` / :class:`PoolRef` (the :data:`PoolSource` union) and
    :class:`NoAuthorizer` / :class:`DefaultAuthorizer` /
    :class:`PoolAuthorizer` (the :data:`AuthorizerChoice` union).

**Pass outputs** -- produced by :mod:`gatewayspec.rewriter`:
    :class:`DocumentFormat`, :class:`RouteOutcome`, :class:`RewriteReport`,
    and :class:`RewriteResult`.

The flat "wire" spelling of a binding (``useDefaultAuthorizer`` plus two
optional pool fields) is only accepted through :meth:`RouteBinding.from_wire`
and :meth:`RewriteConfig.from_wire`, which is where mutually exclusive fields
are rejected with the ``Ambiguous*`` errors from :mod:`gatewayspec.exceptions`.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gatewayspec.exceptions import (
    AmbiguousAuthorizerConfigError,
    AmbiguousDefaultPoolError,
    AmbiguousIntegrationPoolError,
    AuthorizerConfigError,
    ConfigError,
)

DEFAULT_CORS_ALLOW_HEADERS: tuple[str, ...] = (
    "Content-Type",
    "X-Amz-Date",
    "Authorization",
    "X-Api-Key",
    "X-Amz-Security-Token",
    "X-Amz-User-Agent",
)
"""Canonical request headers allowed by synthesized preflight responses."""

DEFAULT_AUTHORIZATION_SCOPES: tuple[str, ...] = ("openid",)
"""Scopes required by :meth:`RewriteConfig.register_function` when none are given."""


# --- Enumerations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods a route binding can target.

    ``ANY`` mirrors API Gateway's catch-all method and is what the default
    binding declares. Lookup is case-insensitive, so ``HTTPMethod("get")``
    returns :attr:`GET`.
    """

    ANY = "ANY"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @classmethod
    def _missing_(cls, value: object) -> Optional["HTTPMethod"]:
        if isinstance(value, str):
            upper = value.upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None


class IntegrationType(str, enum.Enum):
    """Backend integration kinds. Only Lambda proxy integrations exist today."""

    LAMBDA = "lambda"


class DocumentFormat(str, enum.Enum):
    """Serialization formats of a spec document."""

    JSON = "json"
    YAML = "yaml"


# --- Authorizer variants ---


class PoolName(BaseModel):
    """A Cognito user pool given by bare name, expanded with the pass context."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["name"] = "name"
    name: str = Field(min_length=1)


class PoolRef(BaseModel):
    """A Cognito user pool given by fully-qualified ARN, used as-is."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ref"] = "ref"
    arn: str = Field(min_length=1)


PoolSource = Annotated[Union[PoolName, PoolRef], Field(discriminator="kind")]
"""Exactly one way of naming an identity pool."""


class NoAuthorizer(BaseModel):
    """The operation is left unauthenticated by the rewriter."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class DefaultAuthorizer(BaseModel):
    """The operation uses the pass-level default identity pool, if one is set."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["default"] = "default"


class PoolAuthorizer(BaseModel):
    """The operation uses its own identity pool."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pool"] = "pool"
    pool: PoolSource


AuthorizerChoice = Annotated[
    Union[NoAuthorizer, DefaultAuthorizer, PoolAuthorizer],
    Field(discriminator="kind"),
]
"""How a binding wants its operations to be authorized."""


def _present(value: Any) -> bool:
    """Treat ``None`` and empty strings alike as "not supplied"."""
    return value is not None and value != ""


def pool_source_from_fields(
    name: Optional[str],
    arn: Optional[str],
    *,
    conflict: type[AuthorizerConfigError],
    field: str,
    path: Optional[str] = None,
    method: Optional[str] = None,
) -> Optional[PoolName | PoolRef]:
    """Collapse an optional name/ARN pair into a single :data:`PoolSource`.

    Args:
        name: Bare pool name, or ``None``.
        arn: Fully-qualified pool ARN, or ``None``.
        conflict: Error class raised when both are supplied.
        field: Field names reported on conflict.
        path: Binding resource path for error context.
        method: Binding method for error context.

    Returns:
        A :class:`PoolRef`, a :class:`PoolName`, or ``None`` when neither
        field is supplied.

    Raises:
        AuthorizerConfigError: The *conflict* subclass when both are set.
    """
    if _present(name) and _present(arn):
        raise conflict(
            "Only one of a pool ARN or a pool name may be provided, not both",
            field=field,
            path=path,
            method=method,
        )
    if _present(arn):
        return PoolRef(arn=str(arn))
    if _present(name):
        return PoolName(name=str(name))
    return None


def authorizer_from_fields(
    use_default: bool,
    pool_name: Optional[str],
    pool_arn: Optional[str],
    *,
    path: Optional[str] = None,
    method: Optional[str] = None,
) -> NoAuthorizer | DefaultAuthorizer | PoolAuthorizer:
    """Build an :data:`AuthorizerChoice` from the flat wire fields.

    Raises:
        AmbiguousAuthorizerConfigError: The default authorizer was requested
            together with a custom pool.
        AmbiguousIntegrationPoolError: Both a custom pool name and ARN were
            supplied.
    """
    if use_default and (_present(pool_name) or _present(pool_arn)):
        raise AmbiguousAuthorizerConfigError(
            "You cannot use the default authorizer AND specify a custom user pool",
            field="useDefaultAuthorizer",
            path=path,
            method=method,
        )
    if use_default:
        return DefaultAuthorizer()
    pool = pool_source_from_fields(
        pool_name,
        pool_arn,
        conflict=AmbiguousIntegrationPoolError,
        field="authorizerPoolName/authorizerPoolRef",
        path=path,
        method=method,
    )
    if pool is None:
        return NoAuthorizer()
    return PoolAuthorizer(pool=pool)


# --- Bindings ---


class MethodOptions(BaseModel):
    """Per-method options carried by a binding.

    Only ``authorizationScopes`` is consumed by the rewriter. Other keys
    (``authorizationType`` and friends) are preserved in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    authorization_scopes: list[str] = Field(
        default_factory=list, alias="authorizationScopes"
    )


class RouteBinding(BaseModel):
    """A registered route: which backend serves one (path, method) pair.

    Build one directly with an :data:`AuthorizerChoice`, or from the flat
    wire spelling with :meth:`from_wire`.

    Example::

        RouteBinding(
            resource_path="/widgets",
            method=HTTPMethod.GET,
            integration_target="arn:aws:lambda:us-east-1:111122223333:function:fn",
            authorizer=DefaultAuthorizer(),
        )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    resource_path: str = Field(alias="resourcePath")
    method: HTTPMethod
    integration_target: str = Field(alias="integrationTarget", min_length=1)
    integration_type: IntegrationType = Field(
        default=IntegrationType.LAMBDA, alias="integrationType"
    )
    authorizer: AuthorizerChoice = Field(default_factory=NoAuthorizer)
    method_options: MethodOptions = Field(
        default_factory=MethodOptions, alias="methodOptions"
    )

    @property
    def scopes(self) -> list[str]:
        """Authorization scopes declared on the binding (may be empty)."""
        return list(self.method_options.authorization_scopes)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "RouteBinding":
        """Build a binding from its flat JSON/YAML form.

        Accepts ``resourcePath``, ``method``, ``integrationType``,
        ``integrationTarget``, ``useDefaultAuthorizer``,
        ``authorizerPoolName``, ``authorizerPoolRef`` and ``methodOptions``,
        plus the older ``integrationProps.lambdaArn``, ``cognitoUserPool``
        and ``cognitoUserPoolArn`` spellings.

        Raises:
            ConfigError: If the mapping is not a valid binding.
            AuthorizerConfigError: If mutually exclusive authorizer fields
                are set together.
        """
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"Route binding must be an object (got {type(data).__name__})"
            )

        path = data.get("resourcePath")
        method = data.get("method")
        target = data.get("integrationTarget")
        if target is None:
            props = data.get("integrationProps") or {}
            if isinstance(props, Mapping):
                target = props.get("lambdaArn")
        if not _present(target):
            raise ConfigError(
                f"Route binding {method} {path} must provide an integration target "
                "(integrationTarget or integrationProps.lambdaArn)"
            )

        authorizer = authorizer_from_fields(
            bool(data.get("useDefaultAuthorizer", False)),
            data.get("authorizerPoolName", data.get("cognitoUserPool")),
            data.get("authorizerPoolRef", data.get("cognitoUserPoolArn")),
            path=path,
            method=str(method).upper() if method is not None else None,
        )

        try:
            return cls.model_validate(
                {
                    "resourcePath": path,
                    "method": method,
                    "integrationType": data.get("integrationType", IntegrationType.LAMBDA),
                    "integrationTarget": target,
                    "authorizer": authorizer,
                    "methodOptions": data.get("methodOptions") or {},
                }
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid route binding {method} {path}: {exc}") from exc


# --- Pass-level settings ---


class CorsDefaults(BaseModel):
    """CORS settings used for every synthesized preflight operation.

    ``allow_origins`` has set semantics: duplicates are dropped, first
    occurrence order is kept so output stays deterministic.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    allow_origins: tuple[str, ...] = Field(default=("*",), alias="allowOrigins")
    allow_headers: tuple[str, ...] = Field(
        default=DEFAULT_CORS_ALLOW_HEADERS, alias="allowHeaders"
    )
    allow_methods: tuple[str, ...] = Field(
        default=("GET", "POST", "OPTIONS", "DELETE"), alias="allowMethods"
    )
    allow_credentials: bool = Field(default=False, alias="allowCredentials")

    @field_validator("allow_origins")
    @classmethod
    def _dedupe_origins(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value))


class PassContext(BaseModel):
    """Deployment context used to build ARNs.

    ``region`` is always needed for the integration URI. ``account_id`` is
    only needed when a pool is given by bare name.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    region: str = Field(min_length=1)
    account_id: Optional[str] = Field(default=None, alias="accountId")
    partition: str = Field(default="aws", min_length=1)


class RewriteConfig(BaseModel):
    """Everything one merge pass needs besides the document itself.

    Bindings are matched in registration order. The configuration is passed
    explicitly to each pass; nothing is held in module-level state.

    Example::

        config = RewriteConfig(context=PassContext(region="us-east-1"))
        config.register_function("/widgets", HTTPMethod.GET, "arn:...:function:list")
        config.register_anonymous_function("/health", HTTPMethod.GET, "arn:...:function:ping")
    """

    model_config = ConfigDict(populate_by_name=True)

    context: PassContext
    bindings: list[RouteBinding] = Field(default_factory=list)
    default_binding: Optional[RouteBinding] = Field(default=None, alias="defaultBinding")
    cors: Optional[CorsDefaults] = None
    default_pool: Optional[PoolSource] = Field(default=None, alias="defaultPool")

    def register(self, binding: RouteBinding) -> RouteBinding:
        """Append *binding* to the registration list and return it."""
        self.bindings.append(binding)
        return binding

    def register_function(
        self,
        resource_path: str,
        method: HTTPMethod | str,
        integration_target: str,
        method_options: Optional[MethodOptions] = None,
    ) -> RouteBinding:
        """Register a Lambda route guarded by the default authorizer.

        When *method_options* is omitted the route requires the ``openid``
        scope.
        """
        if method_options is None:
            method_options = MethodOptions(
                authorization_scopes=list(DEFAULT_AUTHORIZATION_SCOPES)
            )
        return self.register(
            RouteBinding(
                resource_path=resource_path,
                method=HTTPMethod(method),
                integration_target=integration_target,
                authorizer=DefaultAuthorizer(),
                method_options=method_options,
            )
        )

    def register_anonymous_function(
        self,
        resource_path: str,
        method: HTTPMethod | str,
        integration_target: str,
        method_options: Optional[MethodOptions] = None,
    ) -> RouteBinding:
        """Register a Lambda route that carries no authorizer."""
        return self.register(
            RouteBinding(
                resource_path=resource_path,
                method=HTTPMethod(method),
                integration_target=integration_target,
                authorizer=NoAuthorizer(),
                method_options=method_options or MethodOptions(),
            )
        )

    def set_default_function(
        self, integration_target: str, use_default_authorizer: bool = True
    ) -> RouteBinding:
        """Install the catch-all binding used by routes nothing else matches."""
        self.default_binding = RouteBinding(
            resource_path="*",
            method=HTTPMethod.ANY,
            integration_target=integration_target,
            authorizer=DefaultAuthorizer() if use_default_authorizer else NoAuthorizer(),
        )
        return self.default_binding

    @classmethod
    def from_wire(
        cls,
        data: Mapping[str, Any],
        context: Optional[PassContext] = None,
    ) -> "RewriteConfig":
        """Build a configuration from its JSON/YAML form.

        Recognised keys: ``bindings`` (or ``apiIntegrations``),
        ``defaultBinding`` (or ``defaultApiIntegration``), ``cors`` (or
        ``defaultCorsPreflightOptions``), ``defaultPoolName`` (or
        ``defaultCognitoUserPool``), ``defaultPoolRef`` (or
        ``defaultCognitoUserPoolArn``), and ``region`` / ``accountId`` /
        ``partition`` when *context* is not given.

        Raises:
            ConfigError: If the content is structurally invalid or no region
                is available.
            AuthorizerConfigError: If a binding or the default pool sets
                mutually exclusive fields.
        """
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"Rewrite config must be an object (got {type(data).__name__})"
            )

        if context is None:
            account_id = data.get("accountId")
            try:
                context = PassContext.model_validate(
                    {
                        "region": data.get("region"),
                        "accountId": str(account_id) if account_id is not None else None,
                        "partition": data.get("partition") or "aws",
                    }
                )
            except ValidationError as exc:
                raise ConfigError(f"Invalid pass context: {exc}") from exc

        raw_bindings = data.get("bindings", data.get("apiIntegrations")) or []
        if not isinstance(raw_bindings, list):
            raise ConfigError("'bindings' must be a list of route bindings")
        bindings = [RouteBinding.from_wire(item) for item in raw_bindings]

        default_binding: Optional[RouteBinding] = None
        raw_default = data.get("defaultBinding", data.get("defaultApiIntegration"))
        if raw_default:
            if not isinstance(raw_default, Mapping):
                raise ConfigError("'defaultBinding' must be an object")
            default_binding = RouteBinding.from_wire(
                {"resourcePath": "*", "method": HTTPMethod.ANY.value, **raw_default}
            )

        default_pool = pool_source_from_fields(
            data.get("defaultPoolName", data.get("defaultCognitoUserPool")),
            data.get("defaultPoolRef", data.get("defaultCognitoUserPoolArn")),
            conflict=AmbiguousDefaultPoolError,
            field="defaultPoolName/defaultPoolRef",
        )

        cors: Optional[CorsDefaults] = None
        raw_cors = data.get("cors", data.get("defaultCorsPreflightOptions"))
        if raw_cors is not None:
            try:
                cors = CorsDefaults.model_validate(raw_cors)
            except ValidationError as exc:
                raise ConfigError(f"Invalid CORS defaults: {exc}") from exc

        return cls(
            context=context,
            bindings=bindings,
            default_binding=default_binding,
            cors=cors,
            default_pool=default_pool,
        )


# --- Pass outputs ---


class RouteOutcome(BaseModel):
    """What the rewriter decided for one operation."""

    path: str
    method: HTTPMethod
    integration_target: str
    used_default: bool = False
    authorizer: Optional[str] = None
    scopes: list[str] = Field(default_factory=list)


class RewriteReport(BaseModel):
    """Summary of one merge pass, in document iteration order."""

    routes: list[RouteOutcome] = Field(default_factory=list)
    preflight_paths: list[str] = Field(default_factory=list)
    authorizers: dict[str, str] = Field(
        default_factory=dict, description="Registered authorizer name -> pool ARN"
    )


class RewriteResult(BaseModel):
    """A serialized rewritten document plus the pass report."""

    content: str
    format: DocumentFormat
    report: RewriteReport
