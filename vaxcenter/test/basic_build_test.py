"""
Basic build test
Inserts the demo data set and checks the resulting ledger and report
"""

from vaxcenter.build import build_models, insert_demo_data, load_demo_data
from vaxcenter.business.analytics.wastage_analyzer import WastageAnalyzer
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.data.core.center import Center


def test_demo_data_build(app):
    """Demo data loads through the ledger and journal and is idempotent"""
    build_models()
    data = load_demo_data()
    assert data is not None, "Demo data file should ship with the package"

    summary = insert_demo_data(data)
    assert summary == {'centers': 3, 'citizens': 3, 'staff': 4, 'movements': 4, 'wastage': 1}

    again = insert_demo_data(data)
    assert again == {'centers': 0, 'citizens': 0, 'staff': 0, 'movements': 0, 'wastage': 0}

    ledger = StockLedger()
    riverside = Center.query.filter_by(center_name='Riverside Community Health Center').one()
    hillcrest = Center.query.filter_by(center_name='Hillcrest District Hospital').one()
    pfizer = ledger.get_entry(riverside.id, 'Pfizer')
    assert (pfizer.total_stock, pfizer.remaining_stock) == (250, 250)
    moderna = ledger.get_entry(hillcrest.id, 'Moderna')
    assert (moderna.total_stock, moderna.remaining_stock, moderna.wasted_doses) == (200, 185, 15)

    report = WastageAnalyzer(ledger).compute_wastage()
    assert [row.center_name for row in report.high_risk_centers] == ['Hillcrest District Hospital']
