from services import StatsService


def _t(status='open', priority='medium', category='curriculum'):
    return {'status': status, 'priority': priority, 'category': category}


def test_status_counts_sum_to_total():
    tickets = [_t('open'), _t('open'), _t('in_progress'), _t('resolved')]

    stats = StatsService.get_ticket_stats(tickets)

    assert stats == {'total': 4, 'open': 2, 'inProgress': 1, 'resolved': 1}


def test_breakdowns_always_have_fixed_buckets():
    analytics = StatsService.get_analytics([])

    assert [b['name'] for b in analytics['by_category']] == ['Curriculum', 'Facility', 'Placement', 'Other']
    assert all(b['value'] == 0 for b in analytics['by_category'])
    assert analytics['by_priority'] == [
        {'name': 'High', 'value': 0, 'color': '#ef4444'},
        {'name': 'Medium', 'value': 0, 'color': '#eab308'},
        {'name': 'Low', 'value': 0, 'color': '#22c55e'},
    ]


def test_breakdown_values_match_tickets():
    tickets = [
        _t(priority='high', category='facility'),
        _t(priority='high', category='facility'),
        _t(priority='low', category='other'),
    ]

    analytics = StatsService.get_analytics(tickets)

    by_category = {b['name']: b['value'] for b in analytics['by_category']}
    by_priority = {b['name']: b['value'] for b in analytics['by_priority']}
    assert by_category == {'Curriculum': 0, 'Facility': 2, 'Placement': 0, 'Other': 1}
    assert by_priority == {'High': 2, 'Medium': 0, 'Low': 1}
    assert sum(by_category.values()) == len(tickets)
