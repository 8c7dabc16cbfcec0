import logging

import pytest

from notifier.channels import EmailMessage, MediaMessage, SmsMessage, TemplateMessage, TextMessage
from notifier.channels.composer import compose
from notifier.channels.email import EmailOptions, priority_header
from notifier.errors import ComposeError, InvalidRecipient, MissingContent
from notifier.schemas import Channel

from conftest import make_request


# --- WhatsApp ---


def test_whatsapp_text_message():
    request = make_request(to="(123) 456-7890", templateBody="Hello {name}!", params={"name": "World"})
    message = compose(request, Channel.WHATSAPP)

    assert isinstance(message, TextMessage)
    assert message.to == "+1234567890"
    assert message.body == "Hello World!"
    assert message.to_api_payload() == {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": "+1234567890",
        "type": "text",
        "text": {"preview_url": True, "body": "Hello World!"},
    }


def test_whatsapp_media_takes_precedence_over_template():
    request = make_request(
        mediaUrl="https://cdn.example.com/a.png",
        mediaType="image",
        templateName="order_update",
        templateBody="Look {name}",
    )
    message = compose(request, Channel.WHATSAPP)

    assert isinstance(message, MediaMessage)
    assert message.media_type == "image"
    assert message.caption == "Look World"
    assert message.to_api_payload()["image"] == {
        "link": "https://cdn.example.com/a.png",
        "caption": "Look World",
    }


def test_whatsapp_document_uses_filename_param():
    request = make_request(
        mediaUrl="https://cdn.example.com/invoice.pdf",
        mediaType="document",
        templateBody="",
        params={"filename": "invoice.pdf"},
    )
    message = compose(request, Channel.WHATSAPP)

    assert message.media_type == "document"
    assert message.filename == "invoice.pdf"
    assert message.to_api_payload()["document"] == {
        "link": "https://cdn.example.com/invoice.pdf",
        "filename": "invoice.pdf",
    }


def test_whatsapp_unknown_media_type_defaults_to_image():
    request = make_request(mediaUrl="https://cdn.example.com/x", mediaType="hologram")
    assert compose(request, Channel.WHATSAPP).media_type == "image"


def test_whatsapp_template_message():
    request = make_request(
        templateBody="",
        templateName="order_update",
        locale="pt_BR",
        params={"first": "Ana", "second": "42"},
    )
    message = compose(request, Channel.WHATSAPP)

    assert isinstance(message, TemplateMessage)
    assert message.language == "pt"
    assert message.parameters == ["Ana", "42"]
    payload = message.to_api_payload()
    assert payload["type"] == "template"
    assert payload["template"]["language"] == {"code": "pt"}
    assert payload["template"]["components"][0]["parameters"] == [
        {"type": "text", "text": "Ana"},
        {"type": "text", "text": "42"},
    ]


def test_whatsapp_template_without_params_has_no_components():
    request = make_request(templateBody="", templateName="welcome", params={}, locale="")
    payload = compose(request, Channel.WHATSAPP).to_api_payload()
    assert payload["template"] == {"name": "welcome", "language": {"code": "en"}}


def test_whatsapp_invalid_phone_is_rejected():
    with pytest.raises(InvalidRecipient):
        compose(make_request(to="not-a-number"), Channel.WHATSAPP)


def test_whatsapp_text_rendering_to_empty_body_is_rejected():
    request = make_request(templateBody="{body}", params={"body": ""})
    with pytest.raises(MissingContent):
        compose(request, Channel.WHATSAPP)


def test_unresolved_parameters_are_logged_and_sent_verbatim(caplog):
    request = make_request(templateBody="Hi {name}, code {code}", params={"name": "Ann"})
    with caplog.at_level(logging.WARNING, logger="notifier.channels.composer"):
        message = compose(request, Channel.WHATSAPP)

    assert message.body == "Hi Ann, code {code}"
    assert "code" in caplog.text


# --- Email ---


def test_email_message_with_subject_priority_and_headers():
    request = make_request(
        notificationId="n-42",
        to="user@example.com",
        templateBody="Dear {name}",
        params={"name": "Ann", "order": "7"},
        priority="urgent",
        channelConfig={
            "subject": "Order {order}",
            "headers": {"X-Campaign": "spring", "X-Bad": 5},
        },
    )
    message = compose(request, Channel.EMAIL)

    assert isinstance(message, EmailMessage)
    assert message.to == "user@example.com"
    assert message.subject == "Order 7"
    assert message.body == "Dear Ann"
    assert message.headers == {
        "X-Priority": "1 (Highest)",
        "X-Notification-ID": "n-42",
        "X-Campaign": "spring",
    }


def test_email_subject_defaults_when_absent_or_wrong_type():
    assert compose(make_request(to="a@example.com"), Channel.EMAIL).subject == "Notification"
    request = make_request(to="a@example.com", channelConfig={"subject": 123})
    assert compose(request, Channel.EMAIL).subject == "Notification"


def test_email_without_priority_has_no_priority_header():
    message = compose(make_request(to="a@example.com", priority=""), Channel.EMAIL)
    assert "X-Priority" not in message.headers


def test_email_subject_is_sanitized():
    request = make_request(to="a@example.com", channelConfig={"subject": "Hi\r\nBcc: evil@example.com"})
    assert "\n" not in compose(request, Channel.EMAIL).subject


def test_email_subject_rendering_to_empty_is_rejected():
    request = make_request(to="a@example.com", channelConfig={"subject": "{s}"}, params={"s": " "})
    with pytest.raises(ComposeError):
        compose(request, Channel.EMAIL)


def test_email_invalid_address_is_rejected():
    with pytest.raises(InvalidRecipient):
        compose(make_request(to="+1234567890"), Channel.EMAIL)


@pytest.mark.parametrize(
    "priority,expected",
    [("urgent", "1 (Highest)"), ("high", "2 (High)"), ("medium", "3 (Normal)"),
     ("low", "4 (Low)"), ("", "3 (Normal)"), ("whenever", "3 (Normal)")],
)
def test_priority_header(priority, expected):
    assert priority_header(priority) == expected


def test_email_options_ignore_non_dict_headers():
    options = EmailOptions.from_channel_config({"headers": ["X-A"]})
    assert options.headers == {}


# --- SMS ---


def test_sms_message():
    request = make_request(to="123-456-7890", templateBody="Code {code}", params={"code": "9876"})
    message = compose(request, Channel.SMS)

    assert message == SmsMessage(to="+1234567890", body="Code 9876")


def test_sms_empty_rendered_body_is_rejected():
    request = make_request(templateBody="{x}", params={"x": ""})
    with pytest.raises(MissingContent):
        compose(request, Channel.SMS)


def test_email_options_drop_headers_with_line_breaks():
    options = EmailOptions.from_channel_config(
        {"headers": {"X-A": "x\r\nBcc: evil@example.com", "X-B\n": "v", "X-C": "ok"}}
    )
    assert options.headers == {"X-C": "ok"}
