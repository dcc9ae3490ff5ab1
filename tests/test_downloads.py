from billmaster.utils.downloads import attachment_disposition


def test_ascii_filename_is_kept():
    header = attachment_disposition("invoice-INV-0001.pdf")

    assert header == "attachment; filename=\"invoice-INV-0001.pdf\"; filename*=UTF-8''invoice-INV-0001.pdf"


def test_non_ascii_filename_gets_ascii_fallback_and_utf8_form():
    header = attachment_disposition("invoice-FAT-ção-№1.pdf")

    assert 'filename="invoice-FAT-cao-No1.pdf"' in header
    assert "filename*=UTF-8''invoice-FAT-c%C3%A7%C3%A3o-%E2%84%961.pdf" in header
    header.encode("latin-1")


def test_quotes_and_separators_cannot_break_the_header():
    header = attachment_disposition('invoice-a"b; c.pdf')

    assert 'filename="invoice-a_b_c.pdf"' in header
    assert "%22" in header
    assert header.count('"') == 2


def test_unrepresentable_name_falls_back_to_download():
    assert 'filename="download"' in attachment_disposition("請求書")
