"""
HTTP endpoints of the verification subsystem.

Each action maps one request onto one service call and lets the service's
exceptions become the response:

    - POST /otp/send          -> OTPLoginService.issue
    - POST /otp/verify        -> OTPLoginService.verify
    - POST /password/change   -> PasswordChangeService.initiate
    - POST /password/verify   -> PasswordChangeService.confirm
    - POST /password/apply    -> PasswordChangeService.retry_apply

Status codes: 200 on success, 400 for malformed input, invalid codes and
failed credential checks, 429 when throttled, 500 when the store, the
mailer or the credential store fails.
"""

from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.viewsets import ViewSet

from .exceptions import CodeNotDelivered
from .serializers import (
    OTPSendSerializer,
    OTPVerifySerializer,
    PasswordApplySerializer,
    PasswordChangeSerializer,
    PasswordVerifySerializer,
)
from .services import build_otp_login_service, build_password_change_service

INVALID_CODE_EXAMPLE = OpenApiExample(
    "Invalid code",
    value={"detail": "Invalid or expired verification code."},
)
UPSTREAM_EXAMPLE = OpenApiExample(
    "Email not sent",
    value={"detail": "Failed to send the verification email. Please try again."},
)


class OTPThrottle(AnonRateThrottle):
    """
    Rate throttle for verification endpoints.

    DRF looks up the `otp` scope in `DEFAULT_THROTTLE_RATES`.
    """

    scope = "otp"


class OTPViewSet(ViewSet):
    """
    Email one-time-password endpoints.

    Endpoints:
        - send → Email a 6-digit login code.
        - verify → Check and consume a login code.
    """

    parser_classes = [JSONParser, FormParser, MultiPartParser]
    permission_classes = [AllowAny]
    throttle_classes = [OTPThrottle]

    @extend_schema(
        tags=["OTP"],
        summary="1. Request a login code",
        description="""
        **Endpoint**: POST /otp/send

        Generates a 6-digit code valid for 10 minutes and emails it.
        Requesting again replaces the previous code.

        **Error Handling**:
        - 400: Missing or malformed email.
        - 429: Rate limit.
        - 500: The code was stored but the email could not be sent.
        """,
        request=OTPSendSerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(
                description="Code sent.",
                examples=[
                    OpenApiExample(
                        "Sent",
                        value={"success": True, "detail": "OTP sent successfully."},
                    )
                ],
            ),
            status.HTTP_500_INTERNAL_SERVER_ERROR: OpenApiResponse(
                description="Delivery failed.", examples=[UPSTREAM_EXAMPLE]
            ),
        },
    )
    @action(detail=False, methods=["post"])
    def send(self, request):
        serializer = OTPSendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        receipt = build_otp_login_service().issue(serializer.validated_data["email"])
        if not receipt.delivered:
            raise CodeNotDelivered()

        return Response(
            {"success": True, "detail": _("OTP sent successfully.")},
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["OTP"],
        summary="2. Verify a login code",
        description="""
        **Endpoint**: POST /otp/verify

        Consumes the code. A code works once; wrong, expired, reused and
        unknown codes all get the same 400 response.
        """,
        request=OTPVerifySerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(
                description="Code valid.",
                examples=[
                    OpenApiExample(
                        "Valid",
                        value={"valid": True, "detail": "OTP verified successfully."},
                    )
                ],
            ),
            status.HTTP_400_BAD_REQUEST: OpenApiResponse(
                description="Invalid code.", examples=[INVALID_CODE_EXAMPLE]
            ),
        },
    )
    @action(detail=False, methods=["post"])
    def verify(self, request):
        serializer = OTPVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        build_otp_login_service().verify(
            serializer.validated_data["email"], serializer.validated_data["otp"]
        )

        return Response(
            {"valid": True, "detail": _("OTP verified successfully.")},
            status=status.HTTP_200_OK,
        )


class PasswordViewSet(ViewSet):
    """
    Password change confirmed by an emailed code.

    Endpoints:
        - change → Check the current password and email a code.
        - verify → Consume the code and apply the new password.
        - apply → Finish a verified change whose apply step failed.
    """

    parser_classes = [JSONParser, FormParser, MultiPartParser]
    permission_classes = [AllowAny]
    throttle_classes = [OTPThrottle]

    @extend_schema(
        tags=["Password Management"],
        summary="1. Start a password change",
        description="""
        **Endpoint**: POST /password/change

        Checks `currentPassword`, stages `newPassword` (hashed) and emails a
        verification code to the account's address. Nothing changes until
        the code is confirmed.

        **Error Handling**:
        - 400: Missing fields, wrong current password, or new password equal
          to the current one.
        - 500: The code was stored but the email could not be sent.
        """,
        request=PasswordChangeSerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(
                description="Verification code sent.",
                examples=[
                    OpenApiExample(
                        "Sent",
                        value={
                            "success": True,
                            "detail": "Verification code sent to your email.",
                            "verificationRequired": True,
                        },
                    )
                ],
            ),
            status.HTTP_400_BAD_REQUEST: OpenApiResponse(
                description="Rejected.",
                examples=[
                    OpenApiExample(
                        "Wrong password",
                        value={"detail": "Current password is incorrect."},
                    )
                ],
            ),
        },
    )
    @action(detail=False, methods=["post"])
    def change(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        receipt = build_password_change_service().initiate(
            data["userId"], data["currentPassword"], data["newPassword"]
        )
        if not receipt.delivered:
            raise CodeNotDelivered()

        return Response(
            {
                "success": True,
                "detail": _("Verification code sent to your email."),
                "verificationRequired": True,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Password Management"],
        summary="2. Confirm a password change",
        description="""
        **Endpoint**: POST /password/verify

        Consumes the code and applies the staged password, then emails a
        confirmation.

        **Error Handling**:
        - 400: Invalid, expired or already used code.
        - 500 `verified_not_applied`: The code was accepted but the password
          could not be saved. Call POST /password/apply; do not request a new
          code.
        """,
        request=PasswordVerifySerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(
                description="Password changed.",
                examples=[
                    OpenApiExample(
                        "Changed",
                        value={
                            "success": True,
                            "detail": "Password changed successfully.",
                        },
                    )
                ],
            ),
            status.HTTP_400_BAD_REQUEST: OpenApiResponse(
                description="Invalid code.", examples=[INVALID_CODE_EXAMPLE]
            ),
        },
    )
    @action(detail=False, methods=["post"])
    def verify(self, request):
        serializer = PasswordVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        build_password_change_service().confirm(
            serializer.validated_data["userId"], serializer.validated_data["code"]
        )

        return Response(
            {"success": True, "detail": _("Password changed successfully.")},
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Password Management"],
        summary="3. Retry applying a verified change",
        description="""
        **Endpoint**: POST /password/apply

        Applies a password change whose code was already accepted. Safe to
        call repeatedly.

        **Error Handling**:
        - 404: No verified change is waiting for this user.
        """,
        request=PasswordApplySerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(description="Password changed."),
            status.HTTP_404_NOT_FOUND: OpenApiResponse(
                description="Nothing to apply."
            ),
        },
    )
    @action(detail=False, methods=["post"])
    def apply(self, request):
        serializer = PasswordApplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        applied = build_password_change_service().retry_apply(
            serializer.validated_data["userId"]
        )
        if not applied:
            raise NotFound(_("No verified password change is waiting to be applied."))

        return Response(
            {"success": True, "detail": _("Password changed successfully.")},
            status=status.HTTP_200_OK,
        )
