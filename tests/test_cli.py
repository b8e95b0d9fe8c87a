"""
Tests for the invex CLI
"""

import json

from click.testing import CliRunner

from invex.cli import cli


class TestCLI:
    """Tests for the extract and check commands"""

    def test_extract_prints_outcome(self, tmp_path, sample_invoice_text):
        invoice_file = tmp_path / 'invoice.txt'
        invoice_file.write_text(sample_invoice_text)

        result = CliRunner().invoke(cli, ['extract', str(invoice_file), '--log-level', 'WARNING'])

        assert result.exit_code == 0, result.output
        outcome = json.loads(result.stdout)
        assert outcome['isPlausibleInvoice'] is True
        assert outcome['invoice']['invoiceNumber'] == 'INV-2024-001'
        assert outcome['invoice']['total'] == 22.0

    def test_extract_with_prior(self, tmp_path, sample_invoice_text):
        invoice_file = tmp_path / 'invoice.txt'
        invoice_file.write_text(sample_invoice_text.replace('To: Beta LLC\n', ''))
        prior_file = tmp_path / 'prior.json'
        prior_file.write_text(json.dumps({'customer': 'Beta LLC'}))

        result = CliRunner().invoke(cli, ['extract', str(invoice_file), '--prior', str(prior_file)])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)['invoice']['customer'] == 'Beta LLC'

    def test_extract_rejects_bad_input(self, tmp_path):
        pdf_file = tmp_path / 'fake.pdf'
        pdf_file.write_text('not really a pdf')

        result = CliRunner().invoke(cli, ['extract', str(pdf_file)])

        assert result.exit_code != 0
        assert 'Error' in result.output

    def test_check_invoice(self, tmp_path, sample_invoice_text):
        invoice_file = tmp_path / 'invoice.txt'
        invoice_file.write_text(sample_invoice_text)

        result = CliRunner().invoke(cli, ['check', str(invoice_file)])

        assert result.exit_code == 0
        assert 'looks like an invoice' in result.output

    def test_check_statement(self, tmp_path, bank_statement_text):
        statement_file = tmp_path / 'statement.txt'
        statement_file.write_text(bank_statement_text)

        result = CliRunner().invoke(cli, ['check', str(statement_file)])

        assert result.exit_code == 1
        assert 'does not look like an invoice' in result.output
