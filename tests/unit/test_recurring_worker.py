from datetime import date

from billia.db import models, schemas
from billia.db.repositories import recurring as recurring_repo
from billia.utils.feature_flags import refresh_feature_flag_cache
from billia.workers import recurring_worker


def test_worker_does_nothing_when_disabled(monkeypatch, capsys):
    monkeypatch.setenv("FEATURE_RECURRING_ENABLED", "false")
    refresh_feature_flag_cache()

    assert recurring_worker.main([]) == 0
    assert '"processed": 0' in capsys.readouterr().out


def test_worker_replays_a_given_day(db_session, user, tenant_factory, capsys):
    tenant = tenant_factory(user)
    recurring_repo.create_template(
        db_session,
        user_id=user.id,
        template=schemas.RecurringTemplateCreate(
            tenant_id=tenant.id,
            creation_day=1,
            start_date=date(2024, 5, 1),
            items=[schemas.RecurringItemInput(name="家賃", unit_price=80000)],
        ),
        today=date(2024, 5, 1),
    )

    assert recurring_worker.main(["--date", "2024-05-01"]) == 0

    out = capsys.readouterr().out
    assert '"status": "created"' in out
    assert db_session.query(models.Invoice).count() == 1
