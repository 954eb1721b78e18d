from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import Email, InputRequired, Length, ValidationError

from ..models import User


class JsonForm(FlaskForm):
    """Form bound to a JSON request body; CSRF is enforced by ``CSRFProtect``."""

    class Meta:
        csrf = False

    def error_details(self) -> list:
        return [f"{name}: {message}" for name, messages in self.errors.items() for message in messages]


class RegistrationForm(JsonForm):
    email = StringField("Email", validators=[InputRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[InputRequired(), Length(min=8, max=128)])

    def validate_email(self, field: StringField) -> None:
        if User.query.filter_by(email=field.data.strip().lower()).first():
            raise ValidationError("An account with that email already exists.")


class LoginForm(JsonForm):
    email = StringField("Email", validators=[InputRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[InputRequired()])
