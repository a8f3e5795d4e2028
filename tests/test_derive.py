from forum_pm.models.message import Message, MessageStatus
from forum_pm.models.user import User
from forum_pm.services.derive import derive_edit, derive_quote, derive_reply, reply_title


def _original(title="Hello", body="line1\nline2") -> Message:
    sender = User(id=1, username="alice", email="alice@example.com", enabled=True)
    return Message(
        id=5,
        sender_id=sender.id,
        sender=sender,
        recipient_id=2,
        recipient_name="bob",
        title=title,
        body=body,
        status=MessageStatus.SENT_READ,
    )


def test_reply_prefills_recipient_and_title_only():
    draft = derive_reply(_original())

    assert draft.id is None
    assert draft.recipient == "alice"
    assert draft.title == "Re: Hello"
    assert draft.body == ""


def test_reply_does_not_double_prefix():
    twice = derive_reply(derive_reply(_original(title="Hello")))

    assert twice.title == "Re: Hello"
    assert twice.recipient == "alice"
    assert twice.body == ""
    assert derive_reply(_original(title="Re: Hello")).title == "Re: Hello"
    assert reply_title(reply_title("x")) == "Re: x"


def test_reply_to_empty_title():
    assert derive_reply(_original(title="")).title == "Re: "
    assert derive_quote(_original(title="")).title == "Re: "


def test_quote_prefixes_every_line_and_leaves_a_blank_line():
    draft = derive_quote(_original(body="line1\nline2"))

    assert draft.recipient == "alice"
    assert draft.title == "Re: Hello"
    assert draft.body == "> line1\n> line2\n\n"
    assert draft.body.split("\n")[-1] == ""


def test_quote_of_empty_body():
    assert derive_quote(_original(body="")).body == "> \n\n"


def test_edit_copies_all_fields():
    msg = _original()
    msg.status = MessageStatus.DRAFT
    msg.recipient_name = "bob"

    draft = derive_edit(msg)

    assert draft.id == 5
    assert (draft.title, draft.body, draft.recipient) == ("Hello", "line1\nline2", "bob")


def test_quote_of_derived_reply_keeps_addressee():
    reply = derive_reply(_original())
    quoted = derive_quote(reply.model_copy(update={"body": "ok"}))

    assert quoted.title == "Re: Hello"
    assert quoted.recipient == "alice"
    assert quoted.body == "> ok\n\n"
