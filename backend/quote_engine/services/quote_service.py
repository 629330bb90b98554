"""
报价单管理服务
版本管理、分级审批、发送
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quote_engine.core.config import settings
from quote_engine.core.database import unit_of_work
from quote_engine.core.exceptions import (
    ApprovalOrderError, BusinessException, EmptyQuoteItemsError,
    NoPendingApprovalError, NotFoundException
)
from quote_engine.models.costing import CostCalculation
from quote_engine.models.enums import (
    ActivityType, ApprovalStatus, ApproverRole, QuoteStatus, SendStatus,
    ensure_quote_editable, ensure_quote_transition
)
from quote_engine.models.quote import (
    Quote, QuoteActivityLog, QuoteApproval, QuoteItem, QuoteSendLog,
    QuoteTerm, QuoteTermsTemplate, QuoteVersion
)
from quote_engine.schemas.quote import (
    ApproveQuoteRequest, CreateQuoteRequest, PaginatedQuoteListResponse,
    QuoteActivityLogResponse, QuoteApprovalResponse, QuoteDetailResponse,
    QuoteItemRequest, QuoteItemResponse, QuoteListResponse, QuoteSendLogResponse,
    QuoteTermRequest, QuoteTermResponse, QuoteVersionResponse, SendQuoteRequest,
    SendQuoteResult, SubmitApprovalRequest, UpdateQuoteRequest
)
from quote_engine.services.activity_log import log_activity
from quote_engine.services.approval_policy import determine_approval_levels, evaluate_approvals
from quote_engine.services.costing_engine import round_money
from quote_engine.services.delivery import DocumentRenderer, MailSender
from quote_engine.services.numbering import QUOTE_PREFIX, SequenceService, sequence_service
from quote_engine.services.webhook_service import (
    QUOTE_APPROVED, QUOTE_CREATED, QUOTE_REJECTED, QUOTE_SENT, QUOTE_SUBMITTED,
    WebhookService, webhook_service
)


class QuoteService:
    """报价单管理服务"""

    def __init__(
        self,
        notifier: Optional[WebhookService] = None,
        renderer: Optional[DocumentRenderer] = None,
        mailer: Optional[MailSender] = None,
        sequences: Optional[SequenceService] = None
    ):
        self.notifier = notifier or webhook_service
        self.renderer = renderer
        self.mailer = mailer
        self.sequences = sequences or sequence_service

    # ==================== 创建 / 更新 ====================

    async def create_quote(
        self,
        db: AsyncSession,
        data: CreateQuoteRequest,
        created_by: UUID
    ) -> QuoteDetailResponse:
        """创建报价单草稿（版本1）"""
        if not data.items:
            raise EmptyQuoteItemsError()

        async with unit_of_work(db, "创建报价单"):
            await self._ensure_calculations_exist(db, data.items)

            quote_no = await self.sequences.next_document_no(db, QUOTE_PREFIX)
            quote = Quote(
                quote_no=quote_no,
                inquiry_id=data.inquiry_id,
                customer_id=data.customer_id,
                status=QuoteStatus.DRAFT,
                validity_days=data.validity_days,
                valid_until=datetime.now() + timedelta(days=data.validity_days),
                payment_terms=data.payment_terms,
                delivery_terms=data.delivery_terms,
                remarks=data.remarks,
                currency=data.currency or settings.DEFAULT_CURRENCY,
                total_amount=Decimal("0"),
                created_by=created_by,
                updated_by=created_by
            )
            db.add(quote)
            await db.flush()

            version = QuoteVersion(
                quote_id=quote.id,
                version_number=1,
                version_notes="初始版本",
                is_current=True,
                created_by=created_by
            )
            db.add(version)
            await db.flush()

            quote.total_amount = self._add_items(db, version.id, data.items)

            if data.terms:
                self._add_terms(db, version.id, data.terms)
            elif data.use_template:
                await self._add_template_terms(db, version.id)

            quote.current_version_id = version.id

            await log_activity(
                db, quote.id, version.id, ActivityType.CREATED,
                f"创建报价单 {quote.quote_no}", created_by,
                {"total_amount": str(quote.total_amount)}
            )

        logger.info(f"报价单已创建: {quote.quote_no} | 金额: {quote.total_amount}")
        self._notify(QUOTE_CREATED, quote)
        return await self.get_quote_detail(db, quote.id)

    async def update_quote(
        self,
        db: AsyncSession,
        quote_id: UUID,
        data: UpdateQuoteRequest,
        updated_by: UUID
    ) -> QuoteDetailResponse:
        """
        更新报价单（仅 draft / rejected）

        create_new_version 为真，或新报价项关联的成本计算与当前版本不同时，
        创建新版本；否则原地修改当前版本。
        报价项、条款只在显式提供时整体替换。
        """
        if data.items is not None and not data.items:
            raise EmptyQuoteItemsError()

        async with unit_of_work(db, "更新报价单"):
            quote = await self._lock_quote(db, quote_id)
            ensure_quote_editable(quote.status)
            current = await self._get_current_version(db, quote)
            current_items = await self._get_items(db, current.id)

            new_version = data.create_new_version
            if data.items is not None:
                await self._ensure_calculations_exist(db, data.items)
                # 重新核算成本必须产生新版本
                if self._calculation_ids(current_items) != self._calculation_ids(data.items):
                    new_version = True

            if new_version:
                version = await self._create_next_version(db, quote, current, data, updated_by, current_items)
            else:
                version = current
                if data.items is not None:
                    await db.execute(delete(QuoteItem).where(QuoteItem.quote_version_id == version.id))
                    self._add_items(db, version.id, data.items)
                if data.terms is not None:
                    await db.execute(delete(QuoteTerm).where(QuoteTerm.quote_version_id == version.id))
                    self._add_terms(db, version.id, data.terms)
            await db.flush()

            if data.validity_days is not None:
                quote.validity_days = data.validity_days
                quote.valid_until = datetime.now() + timedelta(days=data.validity_days)
            if data.payment_terms is not None:
                quote.payment_terms = data.payment_terms
            if data.delivery_terms is not None:
                quote.delivery_terms = data.delivery_terms
            if data.remarks is not None:
                quote.remarks = data.remarks

            if quote.status == QuoteStatus.REJECTED:
                ensure_quote_transition(quote.status, QuoteStatus.DRAFT)
                quote.status = QuoteStatus.DRAFT

            quote.total_amount = await self._sum_items(db, version.id)
            quote.current_version_id = version.id
            quote.updated_by = updated_by

            await log_activity(
                db, quote.id, version.id, ActivityType.UPDATED,
                f"更新报价单 {quote.quote_no}，版本 {version.version_number}", updated_by,
                {
                    "version_number": version.version_number,
                    "new_version": new_version,
                    "total_amount": str(quote.total_amount)
                }
            )

        logger.info(
            f"报价单已更新: {quote.quote_no} | 版本: {version.version_number} | 金额: {quote.total_amount}"
        )
        return await self.get_quote_detail(db, quote.id)

    async def _create_next_version(
        self,
        db: AsyncSession,
        quote: Quote,
        current: QuoteVersion,
        data: UpdateQuoteRequest,
        created_by: UUID,
        current_items: Sequence[QuoteItem]
    ) -> QuoteVersion:
        """创建新版本；未提供的报价项和条款沿用上一版本"""
        max_number = (await db.execute(
            select(func.max(QuoteVersion.version_number)).where(QuoteVersion.quote_id == quote.id)
        )).scalar() or 0

        current.is_current = False
        version = QuoteVersion(
            quote_id=quote.id,
            version_number=max_number + 1,
            version_notes=data.version_notes,
            is_current=True,
            created_by=created_by
        )
        db.add(version)
        await db.flush()

        if data.items is not None:
            self._add_items(db, version.id, data.items)
        else:
            for item in current_items:
                db.add(QuoteItem(
                    quote_version_id=version.id,
                    item_no=item.item_no,
                    product_name=item.product_name,
                    product_specs=item.product_specs,
                    quantity=item.quantity,
                    unit=item.unit,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                    cost_calculation_id=item.cost_calculation_id,
                    notes=item.notes
                ))

        if data.terms is not None:
            self._add_terms(db, version.id, data.terms)
        else:
            for term in await self._get_terms(db, current.id):
                db.add(QuoteTerm(
                    quote_version_id=version.id,
                    term_type=term.term_type,
                    term_content=term.term_content,
                    sort_order=term.sort_order
                ))

        return version

    # ==================== 审批 ====================

    async def submit_for_approval(
        self,
        db: AsyncSession,
        quote_id: UUID,
        data: SubmitApprovalRequest,
        submitted_by: UUID
    ) -> QuoteDetailResponse:
        """提交审批，按金额生成本轮审批层级"""
        async with unit_of_work(db, "提交审批"):
            quote = await self._lock_quote(db, quote_id)
            ensure_quote_transition(quote.status, QuoteStatus.PENDING_APPROVAL)

            submission_round = (await self._latest_round(db, quote.id) or 0) + 1
            levels = determine_approval_levels(quote.total_amount)
            for level, role in levels:
                db.add(QuoteApproval(
                    quote_id=quote.id,
                    quote_version_id=quote.current_version_id,
                    submission_round=submission_round,
                    approval_level=level,
                    approver_role=role,
                    approval_status=ApprovalStatus.PENDING
                ))

            quote.status = QuoteStatus.PENDING_APPROVAL
            quote.approved_amount = None
            quote.approved_by = None
            quote.approved_at = None
            quote.updated_by = submitted_by

            await log_activity(
                db, quote.id, quote.current_version_id, ActivityType.SUBMITTED,
                data.notes or f"提交审批，共{len(levels)}级", submitted_by,
                {
                    "submission_round": submission_round,
                    "levels": [role.value for _, role in levels]
                }
            )

        logger.info(f"报价单已提交审批: {quote.quote_no} | 第{submission_round}轮 | {len(levels)}级审批")
        self._notify(QUOTE_SUBMITTED, quote)
        return await self.get_quote_detail(db, quote.id)

    async def approve_quote(
        self,
        db: AsyncSession,
        quote_id: UUID,
        data: ApproveQuoteRequest,
        approver_id: UUID,
        approver_role: ApproverRole
    ) -> QuoteDetailResponse:
        """
        审批报价单（通过/驳回）

        在最新一轮中查找该用户的待审批记录：指定审批人匹配，
        或未指定审批人时按角色匹配，层级低者优先。
        记录后汇总：任一驳回则报价单驳回，全部通过则报价单通过。
        """
        approver_role = ApproverRole(approver_role)
        decision = ApprovalStatus.APPROVED if data.approved else ApprovalStatus.REJECTED

        async with unit_of_work(db, "审批报价单"):
            quote = await self._lock_quote(db, quote_id)
            ensure_quote_transition(
                quote.status,
                QuoteStatus.APPROVED if data.approved else QuoteStatus.REJECTED
            )

            approvals = await self._round_approvals(db, quote.id)
            pending = [a for a in approvals if a.approval_status == ApprovalStatus.PENDING]
            approval = next(
                (
                    a for a in pending
                    if a.required_approver_id == approver_id
                    or (a.required_approver_id is None and a.approver_role == approver_role)
                ),
                None
            )
            if approval is None:
                raise NoPendingApprovalError(str(quote_id), str(approver_id))

            if settings.APPROVAL_STRICT_ORDER:
                blocking = [a.approval_level for a in pending if a.approval_level < approval.approval_level]
                if blocking:
                    raise ApprovalOrderError(approval.approval_level, min(blocking))

            now = datetime.now()
            approval.approval_status = decision
            approval.actual_approver_id = approver_id
            approval.approval_notes = data.notes
            approval.approved_at = now

            outcome = evaluate_approvals(a.approval_status for a in approvals)
            if outcome == QuoteStatus.REJECTED:
                quote.status = QuoteStatus.REJECTED
            elif outcome == QuoteStatus.APPROVED:
                quote.status = QuoteStatus.APPROVED
                quote.approved_by = approver_id
                quote.approved_at = now
                quote.approved_amount = quote.total_amount
            quote.updated_by = approver_id

            action = "通过" if data.approved else "驳回"
            await log_activity(
                db, quote.id, approval.quote_version_id,
                ActivityType.APPROVED if data.approved else ActivityType.REJECTED,
                data.notes or f"第{approval.approval_level}级审批{action}", approver_id,
                {
                    "approval_level": approval.approval_level,
                    "approver_role": approver_role.value,
                    "quote_status": QuoteStatus(quote.status).value
                }
            )

        logger.info(
            f"报价单审批{action}: {quote.quote_no} | 第{approval.approval_level}级 "
            f"({approver_role.value}) | 当前状态: {QuoteStatus(quote.status).value}"
        )
        self._notify(QUOTE_APPROVED if data.approved else QUOTE_REJECTED, quote)
        return await self.get_quote_detail(db, quote.id)

    # ==================== 发送 ====================

    async def send_quote(
        self,
        db: AsyncSession,
        quote_id: UUID,
        data: SendQuoteRequest,
        sent_by: UUID
    ) -> SendQuoteResult:
        """
        发送报价单

        邮件发送失败只记录在发送记录上，报价单保持 approved，可重新发送。
        """
        if self.mailer is None:
            raise BusinessException("未配置邮件发送服务", error_code="DELIVERY_NOT_CONFIGURED")
        if data.attach_pdf and self.renderer is None:
            raise BusinessException("未配置PDF生成服务", error_code="DELIVERY_NOT_CONFIGURED")

        detail = await self.get_quote_detail(db, quote_id)
        ensure_quote_transition(detail.status, QuoteStatus.SENT)

        attachment = None
        if data.attach_pdf:
            attachment = await self.renderer.render_quote_pdf(detail)

        subject = data.subject or f"报价单 {detail.quote_no}"
        async with unit_of_work(db, "创建发送记录"):
            send_log = QuoteSendLog(
                quote_id=detail.id,
                quote_version_id=detail.current_version.id,
                send_method="email",
                recipient_email=data.recipient_email,
                recipient_name=data.recipient_name,
                cc_emails=list(data.cc_emails),
                subject=subject,
                message=data.message,
                send_status=SendStatus.PENDING,
                created_by=sent_by
            )
            db.add(send_log)

        try:
            await self.mailer.send_email(
                recipient=data.recipient_email,
                subject=subject,
                body=data.message or "",
                attachment=attachment,
                cc=list(data.cc_emails)
            )
        except Exception as e:
            async with unit_of_work(db, "记录发送失败"):
                send_log.send_status = SendStatus.FAILED
                send_log.error_message = str(e)
            logger.warning(f"报价单发送失败: {detail.quote_no} -> {data.recipient_email}: {e}")
            return SendQuoteResult(
                quote_id=detail.id,
                quote_status=QuoteStatus.APPROVED,
                send_log_id=send_log.id,
                send_status=SendStatus.FAILED,
                error_message=str(e)
            )

        async with unit_of_work(db, "发送报价单"):
            quote = await self._lock_quote(db, quote_id)
            ensure_quote_transition(quote.status, QuoteStatus.SENT)
            quote.status = QuoteStatus.SENT
            quote.updated_by = sent_by
            send_log.send_status = SendStatus.SENT
            send_log.sent_at = datetime.now()

            await log_activity(
                db, quote.id, send_log.quote_version_id, ActivityType.SENT,
                f"报价单已发送至 {data.recipient_email}", sent_by,
                {"send_log_id": str(send_log.id), "recipient_email": data.recipient_email}
            )

        logger.info(f"报价单已发送: {quote.quote_no} -> {data.recipient_email}")
        self._notify(QUOTE_SENT, quote)
        return SendQuoteResult(
            quote_id=quote.id,
            quote_status=QuoteStatus.SENT,
            send_log_id=send_log.id,
            send_status=SendStatus.SENT
        )

    # ==================== 查询 ====================

    async def get_quote_detail(self, db: AsyncSession, quote_id: UUID) -> QuoteDetailResponse:
        """获取报价单完整详情"""
        quote = await self._get_quote(db, quote_id)
        version = await self._get_current_version(db, quote)
        items = await self._get_items(db, version.id)
        terms = await self._get_terms(db, version.id)
        approvals = await self._round_approvals(db, quote.id)

        return QuoteDetailResponse(
            id=quote.id,
            quote_no=quote.quote_no,
            inquiry_id=quote.inquiry_id,
            customer_id=quote.customer_id,
            status=quote.status,
            validity_days=quote.validity_days,
            valid_until=quote.valid_until,
            payment_terms=quote.payment_terms,
            delivery_terms=quote.delivery_terms,
            remarks=quote.remarks,
            currency=quote.currency,
            total_amount=quote.total_amount,
            approved_amount=quote.approved_amount,
            approved_by=quote.approved_by,
            approved_at=quote.approved_at,
            created_by=quote.created_by,
            updated_by=quote.updated_by,
            created_at=quote.created_at,
            updated_at=quote.updated_at,
            current_version=QuoteVersionResponse.model_validate(version),
            items=[QuoteItemResponse.model_validate(i) for i in items],
            terms=[QuoteTermResponse.model_validate(t) for t in terms],
            approvals=[QuoteApprovalResponse.model_validate(a) for a in approvals]
        )

    async def list_quotes(
        self,
        db: AsyncSession,
        status: Optional[QuoteStatus] = None,
        customer_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 20
    ) -> PaginatedQuoteListResponse:
        """分页查询报价单列表"""
        query = select(Quote)
        if status:
            query = query.where(Quote.status == status)
        if customer_id:
            query = query.where(Quote.customer_id == customer_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        offset = (page - 1) * page_size
        query = query.order_by(desc(Quote.created_at)).offset(offset).limit(page_size)
        quotes = (await db.execute(query)).scalars().all()

        return PaginatedQuoteListResponse(
            total=total,
            page=page,
            page_size=page_size,
            data=[QuoteListResponse.model_validate(q) for q in quotes]
        )

    async def get_quote_versions(self, db: AsyncSession, quote_id: UUID) -> List[QuoteVersionResponse]:
        """获取报价单全部版本（新版本在前）"""
        await self._get_quote(db, quote_id)
        result = await db.execute(
            select(QuoteVersion)
            .where(QuoteVersion.quote_id == quote_id)
            .order_by(desc(QuoteVersion.version_number))
        )
        return [QuoteVersionResponse.model_validate(v) for v in result.scalars().all()]

    async def get_quote_approvals(self, db: AsyncSession, quote_id: UUID) -> List[QuoteApprovalResponse]:
        """获取全部轮次的审批记录"""
        await self._get_quote(db, quote_id)
        result = await db.execute(
            select(QuoteApproval)
            .where(QuoteApproval.quote_id == quote_id)
            .order_by(QuoteApproval.submission_round, QuoteApproval.approval_level)
        )
        return [QuoteApprovalResponse.model_validate(a) for a in result.scalars().all()]

    async def get_activity_logs(self, db: AsyncSession, quote_id: UUID) -> List[QuoteActivityLogResponse]:
        await self._get_quote(db, quote_id)
        result = await db.execute(
            select(QuoteActivityLog)
            .where(QuoteActivityLog.quote_id == quote_id)
            .order_by(QuoteActivityLog.performed_at)
        )
        return [QuoteActivityLogResponse.model_validate(log) for log in result.scalars().all()]

    async def get_send_logs(self, db: AsyncSession, quote_id: UUID) -> List[QuoteSendLogResponse]:
        await self._get_quote(db, quote_id)
        result = await db.execute(
            select(QuoteSendLog)
            .where(QuoteSendLog.quote_id == quote_id)
            .order_by(desc(QuoteSendLog.created_at))
        )
        return [QuoteSendLogResponse.model_validate(log) for log in result.scalars().all()]

    async def get_default_terms_templates(self, db: AsyncSession) -> List[QuoteTermsTemplate]:
        """获取默认条款模板"""
        result = await db.execute(
            select(QuoteTermsTemplate)
            .where(QuoteTermsTemplate.is_default.is_(True), QuoteTermsTemplate.is_active.is_(True))
            .order_by(QuoteTermsTemplate.template_type)
        )
        return list(result.scalars().all())

    # ==================== 内部方法 ====================

    async def _get_quote(self, db: AsyncSession, quote_id: UUID) -> Quote:
        quote = await db.get(Quote, quote_id)
        if not quote:
            raise NotFoundException("报价单", str(quote_id))
        return quote

    async def _lock_quote(self, db: AsyncSession, quote_id: UUID) -> Quote:
        """
        锁定报价单行并重新读取

        先写入报价单行取得写锁（SQLite 不支持 FOR UPDATE），再以
        FOR UPDATE 读取最新状态。同一报价单上的审批、提交、修改由此串行化，
        后续读取需使用 populate_existing 以看到其他事务已提交的数据。
        """
        await db.execute(
            update(Quote)
            .where(Quote.id == quote_id)
            .values(updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(
            select(Quote)
            .where(Quote.id == quote_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        quote = result.scalars().first()
        if not quote:
            raise NotFoundException("报价单", str(quote_id))
        return quote

    async def _get_current_version(self, db: AsyncSession, quote: Quote) -> QuoteVersion:
        result = await db.execute(
            select(QuoteVersion).where(
                QuoteVersion.quote_id == quote.id,
                QuoteVersion.is_current.is_(True)
            )
            .execution_options(populate_existing=True)
        )
        version = result.scalars().first()
        if not version:
            raise NotFoundException("报价单当前版本", str(quote.id))
        return version

    async def _get_items(self, db: AsyncSession, version_id: UUID) -> List[QuoteItem]:
        result = await db.execute(
            select(QuoteItem).where(QuoteItem.quote_version_id == version_id).order_by(QuoteItem.item_no)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _get_terms(self, db: AsyncSession, version_id: UUID) -> List[QuoteTerm]:
        result = await db.execute(
            select(QuoteTerm).where(QuoteTerm.quote_version_id == version_id).order_by(QuoteTerm.sort_order)
        )
        return list(result.scalars().all())

    async def _sum_items(self, db: AsyncSession, version_id: UUID) -> Decimal:
        items = await self._get_items(db, version_id)
        return sum((Decimal(str(i.total_price)) for i in items), Decimal("0"))

    async def _latest_round(self, db: AsyncSession, quote_id: UUID) -> Optional[int]:
        return (await db.execute(
            select(func.max(QuoteApproval.submission_round)).where(QuoteApproval.quote_id == quote_id)
        )).scalar()

    async def _round_approvals(self, db: AsyncSession, quote_id: UUID) -> List[QuoteApproval]:
        """最新一轮的审批记录，按层级排序"""
        latest = await self._latest_round(db, quote_id)
        if latest is None:
            return []
        result = await db.execute(
            select(QuoteApproval)
            .where(QuoteApproval.quote_id == quote_id, QuoteApproval.submission_round == latest)
            .order_by(QuoteApproval.approval_level)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _ensure_calculations_exist(self, db: AsyncSession, items: Sequence[QuoteItemRequest]) -> None:
        ids = self._calculation_ids(items)
        if not ids:
            return
        result = await db.execute(select(CostCalculation.id).where(CostCalculation.id.in_(ids)))
        missing = ids - set(result.scalars().all())
        if missing:
            raise NotFoundException("成本计算", str(sorted(missing, key=str)[0]))

    @staticmethod
    def _calculation_ids(items) -> set:
        return {i.cost_calculation_id for i in items if i.cost_calculation_id}

    @staticmethod
    def _add_items(db: AsyncSession, version_id: UUID, items: Sequence[QuoteItemRequest]) -> Decimal:
        """写入报价项，返回合计金额"""
        total = Decimal("0")
        for item_no, item in enumerate(items, 1):
            total_price = round_money(Decimal(item.quantity) * item.unit_price)
            db.add(QuoteItem(
                quote_version_id=version_id,
                item_no=item_no,
                product_name=item.product_name,
                product_specs=item.product_specs,
                quantity=item.quantity,
                unit=item.unit,
                unit_price=item.unit_price,
                total_price=total_price,
                cost_calculation_id=item.cost_calculation_id,
                notes=item.notes
            ))
            total += total_price
        return total

    @staticmethod
    def _add_terms(db: AsyncSession, version_id: UUID, terms: Sequence[QuoteTermRequest]) -> None:
        for term in terms:
            db.add(QuoteTerm(
                quote_version_id=version_id,
                term_type=term.term_type,
                term_content=term.term_content,
                sort_order=term.sort_order
            ))

    async def _add_template_terms(self, db: AsyncSession, version_id: UUID) -> None:
        """套用默认条款模板"""
        templates = await self.get_default_terms_templates(db)
        for sort_order, template in enumerate(templates, 1):
            db.add(QuoteTerm(
                quote_version_id=version_id,
                term_type=template.template_type,
                term_content=template.content,
                sort_order=sort_order
            ))

    def _notify(self, event_type: str, quote: Quote) -> None:
        """事务提交后投递通知"""
        payload: Dict[str, Any] = {
            "quote_id": str(quote.id),
            "quote_no": quote.quote_no,
            "status": QuoteStatus(quote.status).value,
            "total_amount": str(quote.total_amount),
        }
        self.notifier.notify(event_type, payload)


# 创建全局服务实例
quote_service = QuoteService()
