from __future__ import annotations

from flask import Flask, jsonify, session

from ..common.web import current_user, error_response, json_body, login_required
from ..container import Container
from ..core.exceptions import DomainError, StoreError
from .model import CurrentUser, Profile


def profile_to_json(p: Profile) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "email": p.email,
        "role": p.role.value,
        "rollNumber": p.roll_number,
        "mobileNumber": p.mobile_number,
        "otpEnabled": p.otp_enabled,
        "avatarUrl": p.avatar_url,
    }


def register(app: Flask, container: Container) -> None:
    def _start_session(profile: Profile):
        session.clear()
        session["user_id"] = profile.id
        session["role"] = profile.role.value
        session["name"] = profile.name
        container.data_services.open(CurrentUser.from_profile(profile))
        return jsonify({"success": True, "message": "Login successful", "data": profile_to_json(profile)}), 200

    @app.route("/api/status", methods=["GET"], endpoint="api_status")
    def api_status():
        return jsonify({"backend": container.backend.value, "offline": container.offline}), 200

    @app.route("/api/auth/student/register", methods=["POST"], endpoint="student_register")
    def student_register():
        body = json_body()
        try:
            profile = container.auth_service.register_student(
                name=body.get("name", ""),
                roll_number=body.get("rollNumber", ""),
                email=body.get("email", ""),
                password=body.get("password", ""),
                mobile_number=body.get("mobileNumber") or None,
                enable_otp=bool(body.get("enableOTP", False)),
            )
            return jsonify({"success": True, "message": "Registration successful! Please log in to continue.", "data": profile_to_json(profile)}), 201
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/auth/admin/register", methods=["POST"], endpoint="admin_register")
    def admin_register():
        body = json_body()
        try:
            profile = container.auth_service.register_admin(
                name=body.get("name", ""),
                email=body.get("email", ""),
                password=body.get("password", ""),
                mobile_number=body.get("mobileNumber") or None,
            )
            return jsonify({"success": True, "message": "Admin registered successfully.", "data": profile_to_json(profile)}), 201
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/auth/student/login", methods=["POST"], endpoint="student_login")
    def student_login():
        body = json_body()
        try:
            profile = container.auth_service.login_student(body.get("rollNumber", ""), body.get("password", ""))
            return _start_session(profile)
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/auth/admin/login", methods=["POST"], endpoint="admin_login")
    def admin_login():
        body = json_body()
        try:
            profile = container.auth_service.login_admin(body.get("email", ""), body.get("password", ""))
            return _start_session(profile)
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        user_id = session.get("user_id")
        if user_id:
            container.data_services.close(user_id)
        container.auth_service.logout()
        session.clear()
        return jsonify({"success": True, "message": "Logged out"}), 200

    @app.route("/api/profile", methods=["GET"], endpoint="profile")
    @login_required
    def profile():
        try:
            p = container.auth_service.get_profile(current_user().id)
            return jsonify({"success": True, "data": profile_to_json(p)}), 200
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/profile", methods=["PATCH"], endpoint="update_profile")
    @login_required
    def update_profile():
        body = json_body()
        try:
            p = container.auth_service.update_profile(
                current_user().id,
                name=body.get("name"),
                mobile_number=body.get("mobileNumber"),
                otp_enabled=body.get("otpEnabled"),
                avatar_url=body.get("avatarUrl"),
            )
            session["name"] = p.name
            return jsonify({"success": True, "message": "Profile updated", "data": profile_to_json(p)}), 200
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/profile/otp", methods=["POST"], endpoint="enable_otp")
    @login_required
    def enable_otp():
        body = json_body()
        try:
            p = container.auth_service.enable_otp_login(current_user().id, body.get("mobileNumber", ""))
            return jsonify({"success": True, "message": "OTP login enabled", "data": profile_to_json(p)}), 200
        except (DomainError, StoreError) as e:
            return error_response(e)
