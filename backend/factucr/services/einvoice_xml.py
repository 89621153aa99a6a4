"""Typed FacturaElectronica / MensajeReceptor documents (Hacienda v4.3).

The dataclasses mirror the XML structure and are keyword-only with no
defaults for mandatory elements, so a forgotten field is a TypeError at
construction instead of an empty tag in the output. `render_invoice()` and
`render_receiver_message()` walk a document with ElementTree, which also takes care of
escaping.

`build_invoice_document()` / `build_receiver_message()` map an issued
Invoice and the tenant's CompanyProfile onto these types. They only read
from the ORM objects.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from factucr.models.tenant.company_profile import CompanyProfile
from factucr.models.tenant.customer import IdentificationType
from factucr.models.tenant.invoice import Invoice, PaymentMethod, SaleCondition
from factucr.models.tenant.product_service import ItemType
from factucr.services.clave import Clave, consecutive_of, normalize_legal_id

INVOICE_NS = "https://cdn.comprobanteselectronicos.go.cr/xml-schemas/v4.3/facturaElectronica"
RECEIVER_MESSAGE_NS = "https://cdn.comprobanteselectronicos.go.cr/xml-schemas/v4.3/mensajeReceptor"

# Costa Rica does not observe DST
CR_TZ = timezone(timedelta(hours=-6))

PHONE_COUNTRY_CODE = "506"
CURRENCY = "CRC"
ISSUER_ID_TYPE = "02"  # cédula jurídica
CODE_TYPE_SELLER = "01"
TAX_CODE_IVA = "01"
TAX_RATE_CODE_GENERAL = "08"
DISCOUNT_NATURE = "Descuento comercial"
MESSAGE_ACCEPTED = "1"

SALE_CONDITION_CODES = {
    SaleCondition.CASH.value: "01",
    SaleCondition.CREDIT.value: "02",
}
PAYMENT_METHOD_CODES = {
    PaymentMethod.CASH.value: "01",
    PaymentMethod.CARD.value: "02",
    PaymentMethod.CHECK.value: "03",
    PaymentMethod.TRANSFER.value: "04",
    PaymentMethod.OTHER.value: "99",
}
ID_TYPE_CODES = {
    IdentificationType.INDIVIDUAL.value: "01",
    IdentificationType.BUSINESS.value: "02",
}


# ── Document types ───────────────────────────────────────────

@dataclass(frozen=True, kw_only=True)
class Location:
    province: str
    canton: str
    district: str
    neighborhood: str | None
    other_signs: str


@dataclass(frozen=True, kw_only=True)
class Party:
    name: str
    id_type: str
    id_number: str
    commercial_name: str | None
    location: Location | None
    phone: str | None
    email: str | None


@dataclass(frozen=True, kw_only=True)
class LineItem:
    number: int
    code: str
    quantity: Decimal
    unit: str
    description: str
    unit_price: Decimal
    total_amount: Decimal     # quantity × unit price
    discount: Decimal
    subtotal: Decimal         # total_amount − discount
    tax_rate: Decimal
    tax_amount: Decimal
    line_total: Decimal


@dataclass(frozen=True, kw_only=True)
class Summary:
    currency: str
    exchange_rate: Decimal
    taxed_services: Decimal
    exempt_services: Decimal
    taxed_goods: Decimal
    exempt_goods: Decimal
    total_discounts: Decimal
    total_tax: Decimal
    grand_total: Decimal

    @property
    def total_taxed(self) -> Decimal:
        return self.taxed_services + self.taxed_goods

    @property
    def total_exempt(self) -> Decimal:
        return self.exempt_services + self.exempt_goods

    @property
    def total_sale(self) -> Decimal:
        return self.total_taxed + self.total_exempt

    @property
    def net_sale(self) -> Decimal:
        return self.total_sale - self.total_discounts


@dataclass(frozen=True, kw_only=True)
class ElectronicInvoice:
    clave: str
    activity_code: str
    consecutive: str
    issued_at: datetime
    issuer: Party
    receiver: Party
    sale_condition: str
    credit_term_days: int
    payment_method: str
    lines: tuple[LineItem, ...]
    summary: Summary


@dataclass(frozen=True, kw_only=True)
class ReceiverMessage:
    clave: str
    issuer_id: str
    issued_at: datetime
    message: str
    detail: str
    total_tax: Decimal
    total_invoice: Decimal
    receiver_id: str
    receiver_consecutive: str


# ── Rendering ────────────────────────────────────────────────

def _fmt(value: Decimal, places: int = 2) -> str:
    return f"{Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP):f}"


def _sub(parent: ET.Element, tag: str, text: str | None = None) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if text is not None:
        element.text = text
    return element


def _party(parent: ET.Element, tag: str, party: Party) -> None:
    node = _sub(parent, tag)
    _sub(node, "Nombre", party.name)
    ident = _sub(node, "Identificacion")
    _sub(ident, "Tipo", party.id_type)
    _sub(ident, "Numero", party.id_number)
    if party.commercial_name:
        _sub(node, "NombreComercial", party.commercial_name)
    if party.location is not None:
        loc = _sub(node, "Ubicacion")
        _sub(loc, "Provincia", party.location.province)
        _sub(loc, "Canton", party.location.canton)
        _sub(loc, "Distrito", party.location.district)
        if party.location.neighborhood:
            _sub(loc, "Barrio", party.location.neighborhood)
        _sub(loc, "OtrasSenas", party.location.other_signs)
    if party.phone:
        phone = _sub(node, "Telefono")
        _sub(phone, "CodigoPais", PHONE_COUNTRY_CODE)
        _sub(phone, "NumTelefono", party.phone)
    if party.email:
        _sub(node, "CorreoElectronico", party.email)


def _line(parent: ET.Element, line: LineItem) -> None:
    node = _sub(parent, "LineaDetalle")
    _sub(node, "NumeroLinea", str(line.number))
    code = _sub(node, "Codigo")
    _sub(code, "Tipo", CODE_TYPE_SELLER)
    _sub(code, "Codigo", line.code)
    _sub(node, "Cantidad", _fmt(line.quantity, 3))
    _sub(node, "UnidadMedida", line.unit)
    _sub(node, "Detalle", line.description)
    _sub(node, "PrecioUnitario", _fmt(line.unit_price, 5))
    _sub(node, "MontoTotal", _fmt(line.total_amount))
    if line.discount > 0:
        discount = _sub(node, "Descuento")
        _sub(discount, "MontoDescuento", _fmt(line.discount))
        _sub(discount, "NaturalezaDescuento", DISCOUNT_NATURE)
    _sub(node, "SubTotal", _fmt(line.subtotal))
    tax = _sub(node, "Impuesto")
    _sub(tax, "Codigo", TAX_CODE_IVA)
    _sub(tax, "CodigoTarifa", TAX_RATE_CODE_GENERAL)
    _sub(tax, "Tarifa", _fmt(line.tax_rate))
    _sub(tax, "Monto", _fmt(line.tax_amount))
    _sub(node, "MontoTotalLinea", _fmt(line.line_total))


def _summary(parent: ET.Element, summary: Summary) -> None:
    node = _sub(parent, "ResumenFactura")
    currency = _sub(node, "CodigoTipoMoneda")
    _sub(currency, "CodigoMoneda", summary.currency)
    _sub(currency, "TipoCambio", _fmt(summary.exchange_rate, 5))
    _sub(node, "TotalServGravados", _fmt(summary.taxed_services))
    _sub(node, "TotalServExentos", _fmt(summary.exempt_services))
    _sub(node, "TotalMercanciasGravadas", _fmt(summary.taxed_goods))
    _sub(node, "TotalMercanciasExentas", _fmt(summary.exempt_goods))
    _sub(node, "TotalGravado", _fmt(summary.total_taxed))
    _sub(node, "TotalExento", _fmt(summary.total_exempt))
    _sub(node, "TotalVenta", _fmt(summary.total_sale))
    _sub(node, "TotalDescuentos", _fmt(summary.total_discounts))
    _sub(node, "TotalVentaNeta", _fmt(summary.net_sale))
    _sub(node, "TotalImpuesto", _fmt(summary.total_tax))
    _sub(node, "TotalComprobante", _fmt(summary.grand_total))


def _serialize(root: ET.Element) -> bytes:
    ET.indent(root)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def render_invoice(doc: ElectronicInvoice) -> bytes:
    root = ET.Element("FacturaElectronica", xmlns=INVOICE_NS)
    _sub(root, "Clave", doc.clave)
    _sub(root, "CodigoActividad", doc.activity_code)
    _sub(root, "NumeroConsecutivo", doc.consecutive)
    _sub(root, "FechaEmision", doc.issued_at.isoformat())
    _party(root, "Emisor", doc.issuer)
    _party(root, "Receptor", doc.receiver)
    _sub(root, "CondicionVenta", doc.sale_condition)
    _sub(root, "PlazoCredito", str(doc.credit_term_days))
    _sub(root, "MedioPago", doc.payment_method)
    lines = _sub(root, "DetalleServicio")
    for line in doc.lines:
        _line(lines, line)
    _summary(root, doc.summary)
    return _serialize(root)


def render_receiver_message(doc: ReceiverMessage) -> bytes:
    root = ET.Element("MensajeReceptor", xmlns=RECEIVER_MESSAGE_NS)
    _sub(root, "Clave", doc.clave)
    _sub(root, "NumeroCedulaEmisor", doc.issuer_id)
    _sub(root, "FechaEmisionDoc", doc.issued_at.isoformat())
    _sub(root, "Mensaje", doc.message)
    _sub(root, "DetalleMensaje", doc.detail)
    _sub(root, "MontoTotalImpuesto", _fmt(doc.total_tax))
    _sub(root, "TotalFactura", _fmt(doc.total_invoice))
    _sub(root, "NumeroCedulaReceptor", doc.receiver_id)
    _sub(root, "NumeroConsecutivoReceptor", doc.receiver_consecutive)
    return _serialize(root)


# ── Mapping from the ORM ─────────────────────────────────────

def emission_datetime(issue_date: date) -> datetime:
    return datetime.combine(issue_date, time(0, 0), tzinfo=CR_TZ)


def clave_for(invoice: Invoice, company: CompanyProfile) -> str:
    return str(
        Clave(
            legal_id=company.legal_id,
            issue_date=invoice.issue_date,
            consecutive=consecutive_of(invoice.invoice_number),
            security_code=invoice.security_code,
        )
    )


def _issuer(company: CompanyProfile) -> Party:
    return Party(
        name=company.business_name,
        id_type=ISSUER_ID_TYPE,
        id_number=normalize_legal_id(company.legal_id),
        commercial_name=company.commercial_name,
        location=Location(
            province=company.province,
            canton=company.canton,
            district=company.district,
            neighborhood=company.neighborhood,
            other_signs=company.address,
        ),
        phone=company.phone,
        email=company.email,
    )


def _receiver(invoice: Invoice) -> Party:
    customer = invoice.customer
    location = None
    if customer.province and customer.canton and customer.district and customer.address:
        location = Location(
            province=customer.province,
            canton=customer.canton,
            district=customer.district,
            neighborhood=customer.neighborhood,
            other_signs=customer.address,
        )
    return Party(
        name=customer.name,
        id_type=ID_TYPE_CODES[customer.identification_type],
        id_number=normalize_legal_id(customer.identification_number),
        commercial_name=customer.commercial_name,
        location=location,
        phone=customer.phone1,
        email=customer.email,
    )


def build_invoice_document(
    invoice: Invoice,
    company: CompanyProfile,
    activity_code: str | None = None,
) -> ElectronicInvoice:
    lines = []
    taxed = {ItemType.SERVICE.value: Decimal("0.00"), ItemType.PRODUCT.value: Decimal("0.00")}
    exempt = dict(taxed)
    for detail in invoice.details:
        product = detail.product
        bucket = taxed if detail.tax_rate > 0 else exempt
        bucket[product.item_type] += detail.item_subtotal
        lines.append(
            LineItem(
                number=detail.line_number,
                code=product.code,
                quantity=detail.quantity,
                unit=product.unit_measure,
                description=product.name,
                unit_price=detail.unit_price,
                total_amount=detail.item_subtotal,
                discount=detail.item_discount,
                subtotal=detail.item_subtotal - detail.item_discount,
                tax_rate=detail.tax_rate,
                tax_amount=detail.item_tax,
                line_total=detail.item_total,
            )
        )

    return ElectronicInvoice(
        clave=clave_for(invoice, company),
        activity_code=activity_code or company.activity_code,
        consecutive=invoice.invoice_number,
        issued_at=emission_datetime(invoice.issue_date),
        issuer=_issuer(company),
        receiver=_receiver(invoice),
        sale_condition=SALE_CONDITION_CODES[invoice.sale_condition],
        credit_term_days=invoice.credit_days or 0,
        payment_method=PAYMENT_METHOD_CODES[invoice.payment_method],
        lines=tuple(lines),
        summary=Summary(
            currency=CURRENCY,
            exchange_rate=Decimal("1"),
            taxed_services=taxed[ItemType.SERVICE.value],
            exempt_services=exempt[ItemType.SERVICE.value],
            taxed_goods=taxed[ItemType.PRODUCT.value],
            exempt_goods=exempt[ItemType.PRODUCT.value],
            total_discounts=invoice.total_discount,
            total_tax=invoice.total_tax,
            grand_total=invoice.grand_total,
        ),
    )


def build_receiver_message(invoice: Invoice, company: CompanyProfile) -> ReceiverMessage:
    return ReceiverMessage(
        clave=clave_for(invoice, company),
        issuer_id=normalize_legal_id(company.legal_id),
        issued_at=emission_datetime(invoice.issue_date),
        message=MESSAGE_ACCEPTED,
        detail="Factura aceptada",
        total_tax=invoice.total_tax,
        total_invoice=invoice.grand_total,
        receiver_id=normalize_legal_id(invoice.customer.identification_number),
        receiver_consecutive=invoice.invoice_number,
    )
