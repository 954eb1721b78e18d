from wtforms import BooleanField, DecimalField, FloatField, IntegerField, StringField, TextAreaField
from wtforms.validators import AnyOf, InputRequired, Length, NumberRange, Optional, StopValidation

from ..auth.forms import JsonForm
from ..system_prompts import SYSTEM_PROMPTS


def text_value(form, field) -> None:
    """JSON bodies may carry numbers or objects where a string is expected."""

    if not isinstance(field.data, str):
        raise StopValidation("Must be a string.")


class AIModelForm(JsonForm):
    name = StringField("Name", validators=[InputRequired(), text_value, Length(max=64)])
    display_name = StringField("Display name", validators=[Optional(), text_value, Length(max=64)])
    provider = StringField("Provider", validators=[Optional(), text_value, Length(max=64)])
    capability = TextAreaField("Capability", validators=[Optional(), text_value])
    is_active = BooleanField("Active", default=True)
    max_tokens = IntegerField("Max tokens", validators=[Optional(), NumberRange(min=1)])
    temperature = FloatField("Temperature", validators=[Optional(), NumberRange(min=0, max=2)])
    custom_prompt = TextAreaField("Custom prompt", validators=[Optional(), text_value])
    input_price = DecimalField("Input price", places=4, validators=[Optional(), NumberRange(min=0)])
    output_price = DecimalField("Output price", places=4, validators=[Optional(), NumberRange(min=0)])


class AIModelUpdateForm(AIModelForm):
    """Partial update: every field may be left out."""

    name = StringField("Name", validators=[Optional(), text_value, Length(max=64)])


class PromptTemplateForm(JsonForm):
    variant = StringField("Variant", validators=[InputRequired(), text_value, AnyOf(sorted(SYSTEM_PROMPTS))])
    prompt = TextAreaField("Prompt", validators=[InputRequired(), text_value, Length(min=20)])
    model_id = StringField("Model", validators=[Optional(), text_value, Length(max=36)])
    model_code_name = StringField("Model code name", validators=[Optional(), text_value, Length(max=128)])
    is_current = BooleanField("Make current")
