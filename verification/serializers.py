"""
Request serializers for the verification endpoints.

They only check shape: presence, types and email format.
Business rules (code validity, current password) live in
`verification.services`, so a malformed request is a 400 `ValidationError`
before any code is generated or consumed.

Field names follow the public JSON contract (camelCase).

Example:
    >>> serializer = OTPSendSerializer(data={"email": " A@X.com "})
    >>> serializer.is_valid()
    True
    >>> serializer.validated_data
    {'email': 'a@x.com'}
"""

from drf_spectacular.utils import OpenApiExample, extend_schema_serializer
from rest_framework import serializers


@extend_schema_serializer(
    examples=[
        OpenApiExample("Request a login code", value={"email": "user@example.com"}),
    ],
)
class OTPSendSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254, write_only=True)

    def validate_email(self, value):
        return value.strip().lower()


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Verify a login code",
            value={"email": "user@example.com", "otp": "123456"},
        ),
    ],
)
class OTPVerifySerializer(serializers.Serializer):
    """
    Serializer for verifying an emailed login code.

    **Input Format**: `{"email": "user@example.com", "otp": "123456"}`

    The code is not format-checked here: a code of the wrong length is an
    invalid code (400 `invalid_code`), not malformed input, so the response
    never hints at what the stored code looks like.
    """

    email = serializers.EmailField(max_length=254, write_only=True)
    otp = serializers.CharField(write_only=True)

    def validate_email(self, value):
        return value.strip().lower()


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Start a password change",
            value={
                "userId": 42,
                "currentPassword": "OldPassword1!",
                "newPassword": "NewPassword1!",
            },
        ),
    ],
)
class PasswordChangeSerializer(serializers.Serializer):
    """
    Serializer for starting a password change.

    **Input Format**:
    `{"userId": 42, "currentPassword": "...", "newPassword": "..."}`

    **Security Notes**:
    - The new password is never stored in clear text; it is hashed and
      staged until the emailed code is confirmed.
    """

    userId = serializers.IntegerField(min_value=1, write_only=True)
    currentPassword = serializers.CharField(write_only=True, trim_whitespace=False)
    newPassword = serializers.CharField(
        write_only=True, trim_whitespace=False, max_length=128
    )


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Confirm a password change", value={"userId": 42, "code": "123456"}
        ),
    ],
)
class PasswordVerifySerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1, write_only=True)
    code = serializers.CharField(write_only=True)


class PasswordApplySerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1, write_only=True)
