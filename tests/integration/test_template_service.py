import uuid

import pytest

from app.core.errors import DuplicateError, NotFoundError, StateError, ValidationError
from app.modules.apps.service import AppService
from app.modules.templates.service import TemplateService


async def make(session, tenant, **overrides):
    data = dict(app_id=tenant.id, name="welcome", subject="Hi {{name}}", body="Welcome {{name}} to {{site}}",
                status="ACTIVE", actor="alice")
    data.update(overrides)
    return await TemplateService(session).create(**data)


async def test_create_extracts_tags_as_strings(session, tenant):
    out = await make(session, tenant)
    assert out.status == "ACTIVE"
    assert out.created_by == "alice"
    assert {(t.tag_name, t.datatype) for t in out.tags} == {("name", "STRING"), ("site", "STRING")}


async def test_create_defaults_to_draft_and_checks_input(session, tenant):
    out = await make(session, tenant, status=None)
    assert out.status == "DRAFT"
    with pytest.raises(ValidationError):
        await make(session, tenant, name="x", status="ARCHIVED")
    with pytest.raises(ValidationError):
        await make(session, tenant, name="y", body="   ")
    with pytest.raises(DuplicateError):
        await make(session, tenant)
    with pytest.raises(NotFoundError):
        await make(session, tenant, app_id=uuid.uuid4(), name="z")


async def test_body_change_regenerates_tags(session, tenant):
    out = await make(session, tenant)
    svc = TemplateService(session)
    await svc.update_tag_types(out.id, {"site": "number"}, actor="alice")

    updated = await svc.update(out.id, body="Bye {{name}}, code {{code}}", actor="bob")
    assert {t.tag_name for t in updated.tags} == {"name", "code"}
    # regenerated tags start over as STRING
    assert all(t.datatype == "STRING" for t in updated.tags)
    assert updated.updated_by == "bob"
    assert [t.tag_name for t in await svc.get_tags(out.id)] == ["code", "name"]


async def test_name_only_change_keeps_tag_types(session, tenant):
    out = await make(session, tenant)
    svc = TemplateService(session)
    await svc.update_tag_types(out.id, {"site": "BOOLEAN"}, actor="alice")
    updated = await svc.update(out.id, name="welcome-v2", actor="alice")
    assert {t.tag_name: t.datatype for t in updated.tags} == {"name": "STRING", "site": "BOOLEAN"}


async def test_update_rules(session, tenant):
    out = await make(session, tenant)
    svc = TemplateService(session)
    with pytest.raises(ValidationError):
        await svc.update(out.id, actor="a")
    with pytest.raises(StateError):
        await svc.update(out.id, name="welcome", actor="a")
    with pytest.raises(StateError):
        await svc.update(out.id, status="DELETED", actor="a")
    with pytest.raises(StateError):
        await svc.update(out.id, app_id=uuid.uuid4(), actor="a")

    await svc.update(out.id, status="ARCHIVED", actor="a")
    with pytest.raises(StateError):
        await svc.update(out.id, subject="New {{name}}", actor="a")
    reactivated = await svc.update(out.id, status="active", actor="a")
    assert reactivated.status == "ACTIVE"


async def test_tag_type_update_errors(session, tenant):
    out = await make(session, tenant)
    svc = TemplateService(session)
    with pytest.raises(ValidationError):
        await svc.update_tag_types(out.id, {"name": "DATE"}, actor="a")
    with pytest.raises(NotFoundError):
        await svc.update_tag_types(out.id, {"missing": "STRING"}, actor="a")


async def test_delete_and_listing(session, tenant):
    out = await make(session, tenant)
    await make(session, tenant, name="other")
    svc = TemplateService(session)
    await svc.delete(out.id, actor="a")
    with pytest.raises(StateError):
        await svc.delete(out.id, actor="a")

    assert [t.name for t in await svc.list(app_id=tenant.id)] == ["other"]
    assert [t.name for t in await svc.list(status="deleted")] == ["welcome"]
    with pytest.raises(ValidationError):
        await svc.list(status="bogus")


async def test_deleting_app_cascades_to_templates(session, tenant):
    out = await make(session, tenant)
    apps = AppService(session)
    await apps.delete(tenant.id, actor="admin")

    app = await apps.get(tenant.id)
    assert (app.status, app.is_active, app.is_deleted) == ("DELETED", False, True)
    assert app.api_key == tenant.api_key
    assert (await TemplateService(session).get(out.id)).status == "DELETED"
    with pytest.raises(StateError):
        await TemplateService(session).list(app_id=tenant.id)
    with pytest.raises(StateError):
        await apps.delete(tenant.id, actor="admin")


async def test_plain_text_body_is_stored_as_paragraph(session, tenant):
    out = await make(session, tenant, body="Welcome {{name}}\nsee {{site}}")
    assert out.body == "<p>Welcome {{name}}<br>see {{site}}</p>"
    assert {t.tag_name for t in out.tags} == {"name", "site"}


async def test_script_is_stripped_from_html_body(session, tenant):
    out = await make(session, tenant, body="<p>Hi {{name}}</p><script>alert('x')</script>")
    assert out.body == "<p>Hi {{name}}</p>"
    assert [t.tag_name for t in out.tags] == ["name"]

    svc = TemplateService(session)
    updated = await svc.update(out.id, body='<p onclick="steal()">Bye {{name}}</p>', actor="bob")
    assert updated.body == "<p>Bye {{name}}</p>"


async def test_resending_same_plain_body_is_not_a_change(session, tenant):
    out = await make(session, tenant)
    with pytest.raises(StateError):
        await TemplateService(session).update(out.id, body="Welcome {{name}} to {{site}}", actor="a")


async def test_body_with_only_disallowed_markup_is_rejected(session, tenant):
    with pytest.raises(ValidationError):
        await make(session, tenant, body="<script>alert(1)</script>")
